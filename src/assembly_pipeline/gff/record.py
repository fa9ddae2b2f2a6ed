"""GFF3 data line parsing."""

from dataclasses import dataclass, field
from urllib.parse import unquote


class MalformedRecordError(ValueError):
    """Raised when an input line cannot be parsed into a record."""


@dataclass
class GFF3Record:
    """One GFF3 data line.

    Attributes:
        sequence_id: Column 1, the containing sequence (e.g. NC_021160.1)
        source: Column 2 (e.g. Gnomon, RefSeq)
        type: Column 3 (e.g. gene, mRNA, exon)
        start: Column 4, 1-based inclusive
        end: Column 5, 1-based inclusive
        score: Column 6, None for "."
        strand: Column 7 ("+", "-" or ".")
        phase: Column 8, None for "."
        attributes: Column 9, key -> list of unescaped values
    """

    sequence_id: str
    source: str
    type: str
    start: int
    end: int
    score: float | None = None
    strand: str = "."
    phase: str | None = None
    attributes: dict[str, list[str]] = field(default_factory=dict)

    @classmethod
    def from_line(cls, line: str) -> "GFF3Record":
        """Parse a tab-delimited GFF3 data line.

        Raises:
            MalformedRecordError: Fewer than 9 columns, non-integer
                coordinates, non-numeric score or an attribute without "="
        """
        fields = line.rstrip("\r\n").split("\t")
        if len(fields) < 9:
            raise MalformedRecordError(
                f"GFF3 line has {len(fields)} columns, expected 9"
            )

        try:
            start = int(fields[3])
            end = int(fields[4])
        except ValueError:
            raise MalformedRecordError(
                f"GFF3 coordinates are not integers: {fields[3]!r}, {fields[4]!r}"
            )

        score = None
        if fields[5] not in (".", ""):
            try:
                score = float(fields[5])
            except ValueError:
                raise MalformedRecordError(f"GFF3 score is not numeric: {fields[5]!r}")

        return cls(
            sequence_id=fields[0],
            source=fields[1],
            type=fields[2],
            start=start,
            end=end,
            score=score,
            strand=fields[6] or ".",
            phase=None if fields[7] in (".", "") else fields[7],
            attributes=parse_attributes(fields[8]),
        )

    def first(self, key: str) -> str | None:
        """First value of an attribute, or None if absent."""
        values = self.attributes.get(key)
        if values:
            return values[0]
        return None

    @property
    def id(self) -> str | None:
        return self.first("ID")

    @property
    def names(self) -> list[str]:
        return self.attributes.get("Name", [])

    @property
    def parents(self) -> list[str]:
        return self.attributes.get("Parent", [])

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def parse_attributes(column: str) -> dict[str, list[str]]:
    """Parse a GFF3 attribute column ("ID=gene-A;Dbxref=GeneID:1,Genbank:X").

    Values are split on commas and percent-unescaped after splitting, so an
    escaped comma (%2C) stays inside its value.
    """
    attributes: dict[str, list[str]] = {}
    if column in (".", ""):
        return attributes

    for part in column.strip().split(";"):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            raise MalformedRecordError(f"GFF3 attribute without '=': {part!r}")
        key, value = part.split("=", 1)
        attributes[unquote(key)] = [unquote(v) for v in value.split(",")]
    return attributes
