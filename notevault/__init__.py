"""
NoteVault.

- backend/: API, services, persistence, configuration and background tasks
  for the note lifecycle and access-control engine
"""
