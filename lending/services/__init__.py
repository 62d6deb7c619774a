"""Lending - Services Package

Collaborators the lending core talks to:
- E-mail notification service
"""
