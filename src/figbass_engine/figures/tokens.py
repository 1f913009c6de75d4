"""Token table — the literal spellings of figured bass tokens.

The table is configuration (configs/figured_bass_tokens.json). Every token
has one or more spellings; the first one is canonical and is what the
normalizer writes, the others are accepted as input aliases.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from figbass_engine.config import load_config, load_json
from figbass_engine.figures.models import Modifier, Parenthesis

_TOKENS_CONFIG = "figured_bass_tokens.json"


@dataclass(frozen=True)
class TokenTable:
    """Spellings for modifiers, parentheses and the continuation mark.

    Attributes:
        modifiers: Spellings per non-NONE Modifier, canonical first.
        parentheses: Spellings per non-NONE Parenthesis, canonical first.
        continuation: Spellings of the continuation-line mark.
    """

    modifiers: dict[Modifier, tuple[str, ...]]
    parentheses: dict[Parenthesis, tuple[str, ...]]
    continuation: tuple[str, ...]

    def __post_init__(self) -> None:
        modifiers = _check_class(
            "modifier", self.modifiers, set(Modifier) - {Modifier.NONE},
        )
        parentheses = _check_class(
            "parenthesis", self.parentheses, set(Parenthesis) - {Parenthesis.NONE},
        )
        _check_spellings("continuation", self.continuation)
        continuation = dict.fromkeys(self.continuation, "continuation")

        # one spelling may not stand for tokens of two classes
        for a, b in ((modifiers, parentheses), (modifiers, continuation),
                     (parentheses, continuation)):
            shared = sorted(a.keys() & b.keys())
            if shared:
                spelling = shared[0]
                raise ValueError(
                    f"Spelling {spelling!r} is used by both {a[spelling]} "
                    f"and {b[spelling]}."
                )

    # -- canonical spelling -------------------------------------------------

    def spell_modifier(self, modifier: Modifier) -> str:
        if modifier is Modifier.NONE:
            return ""
        return self.modifiers[modifier][0]

    def spell_parenthesis(self, parenthesis: Parenthesis) -> str:
        if parenthesis is Parenthesis.NONE:
            return ""
        return self.parentheses[parenthesis][0]

    @property
    def continuation_mark(self) -> str:
        return self.continuation[0]

    # -- matching -----------------------------------------------------------

    def match_modifier(
        self,
        text: str,
        pos: int,
        allowed: frozenset[Modifier] | set[Modifier] | None = None,
    ) -> tuple[Modifier, int]:
        """Match the longest modifier spelling at ``text[pos:]``.

        Returns:
            (modifier, length consumed); (Modifier.NONE, 0) when nothing
            allowed matches.
        """
        best: tuple[Modifier, int] = (Modifier.NONE, 0)
        for modifier, spellings in self.modifiers.items():
            if allowed is not None and modifier not in allowed:
                continue
            for spelling in spellings:
                if len(spelling) > best[1] and text.startswith(spelling, pos):
                    best = (modifier, len(spelling))
        return best

    def match_parenthesis(self, text: str, pos: int) -> tuple[Parenthesis, int]:
        """Match the longest parenthesis spelling at ``text[pos:]``."""
        best: tuple[Parenthesis, int] = (Parenthesis.NONE, 0)
        for parenthesis, spellings in self.parentheses.items():
            for spelling in spellings:
                if len(spelling) > best[1] and text.startswith(spelling, pos):
                    best = (parenthesis, len(spelling))
        return best

    def match_continuation(self, text: str, pos: int) -> int:
        """Return the length of the continuation mark at ``text[pos:]`` (0 if none)."""
        return max(
            (len(s) for s in self.continuation if text.startswith(s, pos)),
            default=0,
        )

    def to_dict(self) -> dict:
        return {
            "modifiers": {m.value: list(s) for m, s in self.modifiers.items()},
            "parentheses": {p.value: list(s) for p, s in self.parentheses.items()},
            "continuation": list(self.continuation),
        }


def _check_spellings(name: str, spellings: tuple[str, ...]) -> None:
    if not spellings:
        raise ValueError(f"No spelling configured for {name}.")
    for spelling in spellings:
        if not isinstance(spelling, str) or not spelling:
            raise ValueError(f"Empty or non-string spelling for {name}: {spelling!r}")
        if any(ch.isdigit() or ch.isspace() for ch in spelling):
            raise ValueError(
                f"Spelling {spelling!r} for {name} may not contain digits or whitespace."
            )


def _check_class(kind: str, table: dict, members: set) -> dict[str, str]:
    missing = members - set(table)
    if missing:
        names = sorted(m.value for m in missing)
        raise ValueError(f"Token table is missing {kind} spellings for: {names}")
    seen: dict[str, str] = {}
    for member, spellings in table.items():
        _check_spellings(member.value, spellings)
        for spelling in spellings:
            if spelling in seen and seen[spelling] != member.value:
                raise ValueError(
                    f"{kind.capitalize()} spelling {spelling!r} is used by both "
                    f"{seen[spelling]} and {member.value}."
                )
            seen[spelling] = member.value
    return seen


def token_table_from_dict(data: dict) -> TokenTable:
    """Build a TokenTable from its JSON form.

    Raises:
        ValueError: If a name is unknown or the table is inconsistent.
    """
    return TokenTable(
        modifiers={
            Modifier(name): tuple(spellings)
            for name, spellings in data["modifiers"].items()
        },
        parentheses={
            Parenthesis(name): tuple(spellings)
            for name, spellings in data["parentheses"].items()
        },
        continuation=tuple(data["continuation"]),
    )


_TOKEN_TABLE_CACHE: TokenTable | None = None


def load_token_table(path: str | Path | None = None) -> TokenTable:
    """Load the token spelling table.

    The default table (configs/figured_bass_tokens.json) is cached after the
    first load; an explicit ``path`` is always read.
    """
    global _TOKEN_TABLE_CACHE  # noqa: PLW0603
    if path is not None:
        return token_table_from_dict(load_json(path))

    if _TOKEN_TABLE_CACHE is None:
        _TOKEN_TABLE_CACHE = token_table_from_dict(load_config(_TOKENS_CONFIG))
    return _TOKEN_TABLE_CACHE
