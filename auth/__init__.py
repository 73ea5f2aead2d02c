"""auth/ -- Sessions, TOTP two-factor and role checks for NoteVault.

Layer rule: auth/ imports from core/ and stdlib/third-party libraries only.
It does NOT import from api/, notes/, or payments/.
api/ imports from auth/, not the other way around.
"""
