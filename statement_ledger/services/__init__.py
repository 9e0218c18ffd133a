"""
Services Package

Boundaries to host-supplied collaborators: key-value storage, remote
settings sync, JSON backups and ledger exports. Import from the
submodules directly.
"""
