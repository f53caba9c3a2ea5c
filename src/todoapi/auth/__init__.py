"""Authentication and identity.

Learn: Users register or log in with email/password and receive a
signed JWT. Every protected request presents it as a bearer token;
the resolved user id is then passed explicitly to the todo store,
which scopes each query by owner.
"""
