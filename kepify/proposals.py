"""
Collects parsed proposals and writes them out as one JSON object.

Each proposal becomes a member keyed by md5("<owning-sig>:<title>"), in the
order the proposals were added:

{
	"3f1c...": {
		"title": "...",
		...
		"markdown": "..."
	},
	...
}

Two proposals with the same owning SIG and title share a key. Both are still
written, so the output then holds a repeated key; most JSON readers keep the
last one.
"""
import hashlib
import json
import os
from pathlib import Path

from kepify.errors import OutputIOError
from kepify.parser import Proposal

# JSON key -> Proposal attribute, in output order
FIELD_ORDER = [
    ('title', 'title'),
    ('owning-sig', 'owning_sig'),
    ('participating-sigs', 'participating_sigs'),
    ('reviewers', 'reviewers'),
    ('authors', 'authors'),
    ('editor', 'editor'),
    ('creation-date', 'creation_date'),
    ('last-updated', 'last_updated'),
    ('status', 'status'),
    ('see-also', 'see_also'),
    ('replaces', 'replaces'),
    ('superseded-by', 'superseded_by'),
    ('markdown', 'contents'),
]


def identifier(proposal: Proposal) -> str:
    """Stable lookup key for a proposal. Not a security hash."""
    key = f"{proposal.owning_sig}:{proposal.title}"
    return hashlib.md5(key.encode('utf-8')).hexdigest()


class Proposals:
    """Parse results in the order their files were found."""

    def __init__(self):
        self._items = []

    def add_proposal(self, result) -> None:
        # no filtering here: failures are appended too, render_json refuses them
        self._items.append(result)

    def duplicate_identifiers(self) -> dict[str, list[Proposal]]:
        seen = {}
        for proposal in self._items:
            if isinstance(proposal, Proposal):
                seen.setdefault(identifier(proposal), []).append(proposal)
        return {k: v for k, v in seen.items() if len(v) > 1}

    def __iter__(self):
        return iter(self._items)

    def __len__(self):
        return len(self._items)

    def __getitem__(self, index):
        return self._items[index]


def _encode(value) -> str:
    if isinstance(value, tuple):
        value = list(value)
    return json.dumps(value, ensure_ascii=False)


def render_member(proposal: Proposal) -> str:
    fields = [
        f'\t\t"{key}": {_encode(getattr(proposal, attr))}'
        for key, attr in FIELD_ORDER
    ]
    return f'\t"{identifier(proposal)}": {{\n' + ',\n'.join(fields) + '\n\t}'


def render_json(proposals) -> str:
    """
    Serialize proposals to a single JSON object, one member per proposal.

    Members are written in collection order and repeated identifiers are not
    merged. Raises TypeError if the collection still holds a ParseError.
    """
    members = []
    for result in proposals:
        if not isinstance(result, Proposal):
            raise TypeError(f"cannot serialize a failed parse: {result}")
        members.append(render_member(result))
    if not members:
        return "{\n}\n"
    return "{\n" + ",\n".join(members) + "\n}\n"


def write_json(path: Path, proposals) -> None:
    """
    Write the rendered JSON to path.

    The text goes to a temporary file next to path and is renamed into place,
    so a failed write never leaves a partial output file behind.
    """
    path = Path(path)
    text = render_json(proposals)
    tmp_path = path.with_name(path.name + '.tmp')
    try:
        tmp_path.write_text(text, encoding='utf-8')
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise OutputIOError(f"could not write {path}: {e}") from e
