import requests

from src.cursorctx.domain.models import RepositoryIdentity
from src.cursorctx.services import context_builder as cb
from src.cursorctx.services.context_builder import (
    RepoContextBuilder,
    assemble_prompt_input,
    render_tree,
    tech_stack_from_manifest,
    truncate_readme,
)

from .utils import FakeResponse, FakeSession

CDN = "https://fastly.jsdelivr.net/gh/acme/widgets"
CONTENTS = "https://api.github.com/repos/acme/widgets/contents"
ACME = RepositoryIdentity(owner="acme", repo="widgets")


def test_manifest_dev_dependencies_win_and_keys_are_sorted():
    manifest = {
        "name": "widgets",
        "dependencies": {"zod": "^3.0.0", "react": "^18.0.0", "axios": "^1.0.0"},
        "devDependencies": {"react": "^19.0.0-rc", "eslint": "^9.0.0"},
    }
    assert tech_stack_from_manifest(manifest) == (
        "Project: widgets\n"
        "- axios: ^1.0.0\n"
        "- eslint: ^9.0.0\n"
        "- react: ^19.0.0-rc\n"
        "- zod: ^3.0.0"
    )


def test_manifest_without_name_or_dependency_maps():
    assert tech_stack_from_manifest({"dependencies": {"b": "1", "a": "2"}}) == "- a: 2\n- b: 1"
    assert tech_stack_from_manifest({"dependencies": "oops"}) == ""


def test_truncate_readme_boundary():
    exact = "x" * 2000
    assert truncate_readme(f"  {exact}\n") == exact
    long = "y" * 2001
    out = truncate_readme(long)
    assert out == "y" * 2000 + "\n\n[... truncated]"


def test_render_tree_puts_directories_first_case_sensitive():
    entries = [
        {"name": "package.json", "type": "file"},
        {"name": "src", "type": "dir"},
        {"name": "README.md", "type": "file"},
        {"name": "Docs", "type": "dir"},
        {"name": "assets", "type": "dir"},
    ]
    assert render_tree(entries) == "Docs/\nassets/\nsrc/\nREADME.md\npackage.json"


def test_assemble_prompt_input_section_order():
    out = assemble_prompt_input("- react: 1", "src/", "Hello")
    assert out == "Tech stack:\n- react: 1\n\nRoot directory structure:\nsrc/\n\nREADME description:\nHello"
    assert assemble_prompt_input("- react: 1", None, "Hello") == "Tech stack:\n- react: 1\n\nREADME description:\nHello"
    assert assemble_prompt_input("- react: 1", "  ", "") == "Tech stack:\n- react: 1"


def test_end_to_end_prompt_for_repository_without_readme():
    session = FakeSession(
        {
            f"{CDN}@main/package.json": FakeResponse(
                json_body={"name": "widgets", "dependencies": {"react": "^18.0.0"}}
            ),
            CONTENTS: FakeResponse(
                json_body=[{"name": "src", "type": "dir"}, {"name": "package.json", "type": "file"}]
            ),
        }
    )
    prompt = RepoContextBuilder(session).build_prompt_input(ACME)
    assert prompt == (
        "Tech stack:\nProject: widgets\n- react: ^18.0.0\n\n"
        "Root directory structure:\nsrc/\npackage.json"
    )


def test_fallback_branch_and_truncated_readme():
    session = FakeSession(
        {
            f"{CDN}@main/package.json": FakeResponse(500, text="boom"),
            f"{CDN}@master/package.json": FakeResponse(json_body={"dependencies": {"vue": "3"}}),
            f"{CDN}@main/README.md": requests.exceptions.ConnectionError("reset"),
            f"{CDN}@master/README.md": FakeResponse(text="r" * 2500),
            CONTENTS: FakeResponse(403, json_body={"message": "rate limited"}),
        }
    )
    prompt = RepoContextBuilder(session).build_prompt_input(ACME)
    assert prompt.startswith("Tech stack:\n- vue: 3\n\nREADME description:\n")
    assert prompt.endswith("r" * 2000 + "\n\n[... truncated]")
    assert "Root directory structure" not in prompt


def test_missing_everything_yields_placeholder_only():
    prompt = RepoContextBuilder(FakeSession()).build_prompt_input(ACME)
    assert prompt == (
        "Tech stack:\nRepository: acme/widgets "
        "(no package.json found - infer stack from README and directory structure)"
    )


def test_unparsable_manifest_falls_through_to_next_branch():
    session = FakeSession(
        {
            f"{CDN}@main/package.json": FakeResponse(text="{not json"),
            f"{CDN}@master/package.json": FakeResponse(json_body={"name": "w"}),
        }
    )
    assert RepoContextBuilder(session).fetch_manifest(ACME) == {"name": "w"}


def test_tree_fetch_sends_github_headers_and_ignores_non_list():
    session = FakeSession({CONTENTS: FakeResponse(json_body={"message": "This repository is empty."})})
    assert RepoContextBuilder(session).fetch_tree(ACME) is None
    headers = session.calls[0]["headers"]
    assert headers["Accept"] == "application/vnd.github+json"
    assert headers["X-GitHub-Api-Version"] == "2022-11-28"


def test_crashing_fetcher_does_not_break_other_sections(monkeypatch):
    session = FakeSession({f"{CDN}@main/README.md": FakeResponse(text="About widgets")})
    builder = RepoContextBuilder(session)

    def _explode(_identity):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(builder, "fetch_tree", _explode)
    prompt = builder.build_prompt_input(ACME)
    assert prompt.endswith("README description:\nAbout widgets")


def test_module_level_helper_uses_default_builder(monkeypatch):
    captured = {}

    class StubBuilder:
        def __init__(self, *args, **kwargs):
            captured["timeout"] = kwargs.get("timeout")

        def build_prompt_input(self, identity):
            return f"Tech stack:\n{identity.slug}"

    monkeypatch.setattr(cb, "RepoContextBuilder", StubBuilder)
    assert cb.build_prompt_input(ACME, timeout=3.0) == "Tech stack:\nacme/widgets"
    assert captured["timeout"] == 3.0
