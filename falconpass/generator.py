"""
Secure Password Generator: random secrets under character-set constraints.

Index randomness comes from :mod:`secrets` (the OS CSPRNG). ``secrets.choice``
draws with rejection sampling, so there is no modulo bias for any charset size.

Security Note:
    Never log generated passwords.
"""
import secrets
import logging

from pydantic import BaseModel

logger = logging.getLogger("falconpass.generator")

UPPERCASE_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWERCASE_CHARS = "abcdefghijklmnopqrstuvwxyz"
NUMBER_CHARS = "0123456789"
SYMBOL_CHARS = "!@#$%^&*()_+-=[]{}|;:,.<>?"
AMBIGUOUS_CHARS = "l1IO0"

DEFAULT_CHARSET = UPPERCASE_CHARS + LOWERCASE_CHARS + NUMBER_CHARS


class PasswordOptions(BaseModel):
    """Character classes enabled for password generation."""

    uppercase: bool = True
    lowercase: bool = True
    numbers: bool = True
    symbols: bool = True
    avoid_ambiguous: bool = False


def build_charset(
    uppercase: bool = True,
    lowercase: bool = True,
    numbers: bool = True,
    symbols: bool = True,
    avoid_ambiguous: bool = False,
) -> str:
    """Assemble the candidate alphabet for the given flags.

    If every class is disabled the alphanumeric default is used instead of
    failing: an empty selection is treated as "no preference".
    """
    charset = ""
    if uppercase:
        charset += UPPERCASE_CHARS
    if lowercase:
        charset += LOWERCASE_CHARS
    if numbers:
        charset += NUMBER_CHARS
    if symbols:
        charset += SYMBOL_CHARS
    if not charset:
        logger.debug("No character class selected, using alphanumeric default")
        charset = DEFAULT_CHARSET
    if avoid_ambiguous:
        charset = "".join(c for c in charset if c not in AMBIGUOUS_CHARS)
    return charset


def generate_password(
    length: int = 16,
    uppercase: bool = True,
    lowercase: bool = True,
    numbers: bool = True,
    symbols: bool = True,
    avoid_ambiguous: bool = False,
) -> str:
    """Generate a random password.

    Args:
        length: Number of characters, at least 1.
        uppercase: Include ``A-Z``.
        lowercase: Include ``a-z``.
        numbers: Include ``0-9``.
        symbols: Include punctuation symbols.
        avoid_ambiguous: Drop look-alike characters (``l1IO0``).

    Returns:
        Password string of exactly ``length`` characters.

    Raises:
        ValueError: If length is less than 1.
    """
    if length < 1:
        raise ValueError(f"Password length must be at least 1, got {length}")
    charset = build_charset(
        uppercase=uppercase,
        lowercase=lowercase,
        numbers=numbers,
        symbols=symbols,
        avoid_ambiguous=avoid_ambiguous,
    )
    return "".join(secrets.choice(charset) for _ in range(length))


def generate_password_from_options(length: int, options: PasswordOptions) -> str:
    """Generate a password using a :class:`PasswordOptions` record."""
    return generate_password(length, **options.model_dump())
