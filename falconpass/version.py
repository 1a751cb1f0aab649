"""FalconPass Meta information.
   FalconPass is the client-side cryptography core of a zero-knowledge
   password manager.
"""
__title__ = 'falconpass'
__description__ = (
   'Zero-knowledge vault core: Argon2id key derivation and '
   'XChaCha20-Poly1305 envelopes for password entries.'
)
__version__ = '1.0.0'
__copyright__ = 'Copyright (c) 2026 FalconPass Team'
__author__ = 'FalconPass Team'
__author_email__ = 'dev@falconpass.app'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/falconpass/falconpass'
