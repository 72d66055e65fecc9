"""Pipeline services: provider fetcher, extractor, reconciler, and submission builder."""
