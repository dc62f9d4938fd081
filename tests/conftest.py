import pytest


KEP_TEMPLATE = """---
title: {title}
owning-sig: {sig}
participating-sigs:
  - sig-architecture
reviewers:
  - "@alice"
  - "@bob"
authors:
  - "@carol"
editor: TBD
creation-date: 2020-01-15
last-updated: "2020-02-01"
status: {status}
see-also:
replaces: []
superseded-by:
---
{body}"""


def make_kep(title="Foo", sig="sig-x", status="implementable", body="# Summary\n\nHello\n"):
    return KEP_TEMPLATE.format(title=title, sig=sig, status=status, body=body)


@pytest.fixture()
def kep_dir(tmp_path):
    """A keps/ tree with two valid KEPs and the usual non-KEP files."""
    root = tmp_path / "keps"
    (root / "sig-x").mkdir(parents=True)
    (root / "sig-y").mkdir()
    (root / "sig-x" / "1000-foo.md").write_text(make_kep(), encoding="utf-8")
    (root / "sig-y" / "2000-bar.md").write_text(
        make_kep(title="Bar", sig="sig-y", status="provisional"), encoding="utf-8"
    )
    (root / "README.md").write_text("# KEPs\n", encoding="utf-8")
    (root / "sig-x" / "kep.yaml").write_text("title: ignored\n", encoding="utf-8")
    return root


@pytest.fixture()
def kep_text():
    return make_kep
