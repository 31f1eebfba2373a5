from __future__ import annotations

from loresync.domain.model import EntityLink
from loresync.domain.text import (
    coerce_text,
    collect_links,
    collect_tags,
    html_to_markdown,
    is_external_image_url,
    remote_description,
    resolve_crosslinks,
    synthesize_description,
)


def test_html_to_markdown_converts_common_tags() -> None:
    html = "<p>The <strong>Iron</strong> <em>Gate</em></p><ul><li>north</li><li>south</li></ul>"

    assert html_to_markdown(html) == "The **Iron** _Gate_\n\n- north\n- south"


def test_html_to_markdown_drops_scripts_and_references() -> None:
    html = '<p data-id="x">Hello<script>alert(1)</script> @UUID[Actor.abc]{Mira}</p>'

    assert html_to_markdown(html) == "Hello {Mira}"
    assert "@UUID[Actor.abc]" in html_to_markdown(html, keep_references=True)


def test_synthesize_description_uses_first_non_blank_candidate() -> None:
    assert synthesize_description("  ", (None, {"value": "<p>Bio</p>"}, "later")) == "Bio"
    assert synthesize_description(None) == ""


def test_coerce_text_flattens_nested_shapes() -> None:
    assert coerce_text({"public": "shown"}) == "shown"
    assert coerce_text(["a", None, {"value": "b"}]) == "a\nb"
    assert coerce_text(12) == "12"


def test_collect_tags_and_links() -> None:
    text = "Met #Mira at the #docks. See @UUID[Actor.mira] and @JournalEntry[Lore]"

    assert collect_tags(text) == {"mira", "docks"}
    assert collect_links(text) == (
        EntityLink("uuid", "Actor.mira"),
        EntityLink("journal", "Lore"),
    )


def test_is_external_image_url() -> None:
    assert is_external_image_url("https://cdn.example.com/mira.png")
    assert not is_external_image_url("worlds/mine/mira.png")
    assert not is_external_image_url("data:image/png;base64,AAAA")
    assert not is_external_image_url(None)


def test_resolve_crosslinks_replaces_known_targets_only() -> None:
    lookup = {"Actor.mira": "remote-mira"}.get

    result = resolve_crosslinks("@UUID[Actor.mira] meets @UUID[Actor.ghost]", lookup)

    assert result == "[[remote-mira]] meets @UUID[Actor.ghost]"


def test_remote_description_strips_unresolved_tokens() -> None:
    lookup = {"Actor.mira": "remote-mira"}.get

    assert remote_description(" @UUID[Actor.mira] and @UUID[Actor.ghost] ", lookup) == (
        "[[remote-mira]] and"
    )
