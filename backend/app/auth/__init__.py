"""
Authentication: identity provider, sessions, login redirects and the page gate.
"""
