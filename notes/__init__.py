"""notes/ -- Note persistence for NoteVault.

Layer rule: notes/ imports from core/ and stdlib/third-party only.
api/ imports from notes/, not the other way around.
"""
