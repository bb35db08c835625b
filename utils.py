import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional

def normalize_string(text: Optional[str]) -> Optional[str]:
    """
    Normaliza string removendo acentos e convertendo para minúsculas.
    Útil para buscas case-insensitive e accent-insensitive.
    """
    if not text:
        return text

    # Normalizar unicode (NFD = decomposição canônica)
    nfd = unicodedata.normalize('NFD', text)

    # Remover acentos (categoria Mn = Nonspacing Mark)
    without_accents = ''.join(char for char in nfd if unicodedata.category(char) != 'Mn')

    # Converter para minúsculas e remover espaços extras
    return without_accents.lower().strip()

def normalize_filing_number(filing_number: Optional[str]) -> str:
    """
    Remove espaços e separadores comuns ("-", ".", "/") do radicado.

    "11001-31-03-001-2020-00123-00" -> "11001310300120200012300"
    """
    if not filing_number:
        return ""
    return re.sub(r"[\s\-./]", "", filing_number)

def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Datas com fuso viram UTC sem tzinfo; datas sem fuso ficam como estão."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)

def isoformat_or_none(value: Optional[datetime]) -> Optional[str]:
    value = to_naive_utc(value)
    return value.isoformat() if value else None
