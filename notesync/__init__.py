"""
notesync.

Local/remote synchronization and identity-reconciliation core for a
note-taking application.

- codec/: Rich document model and byte/wire encodings
- core/: Configuration, logging, errors, identifiers, session, resilience
- models/: Local record store (SQLAlchemy)
- remote/: Remote store contract and clients
- repositories/: Local store adapter and remote row repositories
- services/: Sync manager and social aggregates
- cli/: Operator CLI (Typer + Rich)
"""

__version__ = "0.4.0"
