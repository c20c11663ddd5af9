"""Synapse-side provisioning.

Steps that reach outside the bridge data dir: placing the registration manifest
in Synapse's data volume and listing it in `homeserver.yaml`.
"""
