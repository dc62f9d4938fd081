import hashlib
import json
from dataclasses import replace

import pytest

from kepify.errors import OutputIOError
from kepify.parser import MISSING_FIELD, ParseError, Proposal, parse_text
from kepify.proposals import Proposals, identifier, render_json, write_json


def make_proposal(title="Foo", sig="sig-x", **kwargs):
    return Proposal(title=title, owning_sig=sig, status=kwargs.pop("status", "draft"), **kwargs)


def test_identifier_is_md5_of_sig_and_title():
    expected = hashlib.md5(b"sig-x:Foo").hexdigest()
    assert identifier(make_proposal()) == expected


def test_identifier_ignores_other_fields():
    base = make_proposal()
    changed = replace(base, status="implemented", reviewers=("a",), contents="other")
    assert identifier(changed) == identifier(base)


def test_identifier_changes_with_title_or_sig():
    base = make_proposal()
    assert identifier(replace(base, title="Bar")) != identifier(base)
    assert identifier(replace(base, owning_sig="sig-y")) != identifier(base)


def test_add_proposal_keeps_failures():
    proposals = Proposals()
    err = ParseError(MISSING_FIELD, "missing required field(s): title")
    proposals.add_proposal(make_proposal())
    proposals.add_proposal(err)
    assert len(proposals) == 2
    assert proposals[1] is err


def test_render_refuses_failures():
    proposals = Proposals()
    proposals.add_proposal(ParseError(MISSING_FIELD, "missing"))
    with pytest.raises(TypeError):
        render_json(proposals)


def test_round_trip(kep_text):
    body = 'He said "hi"\n\ttabbed\nünïcode\n'
    kep = parse_text(kep_text(body=body))
    proposals = Proposals()
    proposals.add_proposal(kep)

    decoded = json.loads(render_json(proposals))
    assert decoded == {
        identifier(kep): {
            "title": "Foo",
            "owning-sig": "sig-x",
            "participating-sigs": ["sig-architecture"],
            "reviewers": ["@alice", "@bob"],
            "authors": ["@carol"],
            "editor": "TBD",
            "creation-date": "2020-01-15",
            "last-updated": "2020-02-01",
            "status": "implementable",
            "see-also": [],
            "replaces": [],
            "superseded-by": [],
            "markdown": "---\n" + body,
        }
    }


def test_field_order():
    proposals = Proposals()
    proposals.add_proposal(make_proposal())
    member = json.loads(render_json(proposals), object_pairs_hook=list)[0][1]
    assert [k for k, _ in member] == [
        "title", "owning-sig", "participating-sigs", "reviewers", "authors",
        "editor", "creation-date", "last-updated", "status", "see-also",
        "replaces", "superseded-by", "markdown",
    ]


def test_members_follow_collection_order():
    proposals = Proposals()
    titles = ["Zeta", "Alpha", "Mu"]
    for title in titles:
        proposals.add_proposal(make_proposal(title=title))
    pairs = json.loads(render_json(proposals), object_pairs_hook=list)
    assert [fields[0][1] for _, fields in pairs] == titles


def test_tab_indented_layout():
    proposals = Proposals()
    proposals.add_proposal(make_proposal())
    proposals.add_proposal(make_proposal(title="Bar"))
    text = render_json(proposals)
    assert text.startswith("{\n\t\"")
    assert "\n\t\t\"title\": \"Foo\",\n" in text
    assert text.count("\n\t},\n") == 1
    assert text.endswith("\n\t}\n}\n")


def test_empty_collection_renders_empty_object():
    assert json.loads(render_json(Proposals())) == {}


def test_duplicate_identifiers_are_kept():
    # same owning SIG and title: both members are written under one key
    proposals = Proposals()
    first = make_proposal(contents="one")
    second = make_proposal(contents="two")
    proposals.add_proposal(first)
    proposals.add_proposal(second)

    pairs = json.loads(render_json(proposals), object_pairs_hook=list)
    assert [key for key, _ in pairs] == [identifier(first)] * 2
    assert [dict(fields)["markdown"] for _, fields in pairs] == ["one", "two"]
    assert proposals.duplicate_identifiers() == {identifier(first): [first, second]}


def test_write_json(tmp_path):
    proposals = Proposals()
    proposals.add_proposal(make_proposal())
    out = tmp_path / "keps.json"
    write_json(out, proposals)
    assert json.loads(out.read_text(encoding="utf-8"))
    assert not (tmp_path / "keps.json.tmp").exists()


def test_write_json_into_missing_directory(tmp_path):
    proposals = Proposals()
    proposals.add_proposal(make_proposal())
    out = tmp_path / "missing" / "keps.json"
    with pytest.raises(OutputIOError):
        write_json(out, proposals)
    assert not out.exists()


def test_write_json_cleans_up_when_rename_fails(tmp_path):
    proposals = Proposals()
    proposals.add_proposal(make_proposal())
    out = tmp_path / "keps.json"
    out.mkdir()  # a file cannot be renamed over a directory

    with pytest.raises(OutputIOError):
        write_json(out, proposals)
    assert out.is_dir()
    assert not (tmp_path / "keps.json.tmp").exists()
