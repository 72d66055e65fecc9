"""HTTP surface for project intake."""
