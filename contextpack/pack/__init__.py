"""Pack package - draft Context Pack assembly."""

from contextpack.pack.assembler import (
    assemble_pack,
    build_summary,
    company_name_from_url,
    extraction_from_pack,
    generate_pack_id,
)

__all__ = [
    "assemble_pack",
    "build_summary",
    "company_name_from_url",
    "extraction_from_pack",
    "generate_pack_id",
]
