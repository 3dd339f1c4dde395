"""Credential Vault Meta information.
   Credential Vault keeps per-user third-party API keys encrypted at rest.
"""
__title__ = 'credential_vault'
__description__ = (
   'Credential Vault keeps per-user third-party API keys '
   'encrypted at rest.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2025 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/credential-vault'
