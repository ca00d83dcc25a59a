"""
Session tokens, password hashing and password-reset tokens.
"""
