"""project_intake: turn loosely-specified on-chain project records into registry submissions.

The package fetches a canonical record from a project-data provider, asks a
schema-constrained AI capability to extract the structured fields the provider
lacks, reconciles both sources, validates the user-edited result, and forwards
it to the downstream registry over its RPC protocol.
"""
