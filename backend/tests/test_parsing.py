import pytest

from chat_digest.schemas.summary import SummaryOutput
from chat_digest.services.summarizers.parsing import parse_summary_response

from conftest import DEPLOYMENT_SUMMARY


def test_plain_labels_split_into_sections():
    parsed = parse_summary_response(DEPLOYMENT_SUMMARY)

    assert parsed.overview == "Alice and Bob agreed on the release plan for the new API."
    assert parsed.decisions == "- Deploy to production on Friday after the final test run"
    assert "@Bob: Prepare the deployment checklist" in parsed.action_items
    assert "@Alice" in parsed.action_items
    assert parsed.blockers == "None"
    assert parsed.resources == "https://wiki.example.com/release-plan"


def test_markdown_decorated_labels():
    text = (
        "## Overview\n"
        "Sprint planning for Q2.\n\n"
        "**Key Decisions:**\n"
        "- Ship offline mode first\n\n"
        "### Action Items\n"
        "- @Emma draft the spec\n\n"
        "> Blockers: waiting on design review\n\n"
        "_Resources_: None\n"
    )

    parsed = parse_summary_response(text)

    assert parsed.overview == "Sprint planning for Q2."
    assert parsed.decisions == "- Ship offline mode first"
    assert parsed.action_items == "- @Emma draft the spec"
    assert parsed.blockers == "waiting on design review"
    assert parsed.resources == "None"


@pytest.mark.parametrize(
    "text",
    [
        "1. Overview: Alice and Bob planned the release.\n"
        "2. Key Decisions: Deploy on Friday.\n"
        "3. Action Items: @Bob prepare the checklist",
        "- **Overview:** Alice and Bob planned the release.\n"
        "- **Key Decisions:** Deploy on Friday.\n"
        "- **Action Items:** @Bob prepare the checklist",
        "**Overview** Alice and Bob planned the release.\n"
        "**Key Decisions** Deploy on Friday.\n"
        "**Action Items** @Bob prepare the checklist",
        "• Overview: Alice and Bob planned the release.\n"
        "• Key Decisions: Deploy on Friday.\n"
        "• Action Items: @Bob prepare the checklist",
        "2) __Overview__: Alice and Bob planned the release.\n"
        "3) __Key Decisions__: Deploy on Friday.\n"
        "4) __Action Items__: @Bob prepare the checklist",
    ],
    ids=["numbered", "dash-bold-colon", "bold-no-colon", "bullet", "paren-numbered-underline"],
)
def test_list_markers_and_emphasis_around_labels(text):
    parsed = parse_summary_response(text)

    assert parsed.overview == "Alice and Bob planned the release."
    assert parsed.decisions == "Deploy on Friday."
    assert parsed.action_items == "@Bob prepare the checklist"


def test_plain_word_without_colon_is_not_a_label():
    parsed = parse_summary_response("Overview of the week was calm\nKey Decisions: none")

    assert parsed.overview == ""
    assert parsed.decisions == "none"


def test_labels_are_case_insensitive_and_decisions_alias_accepted():
    parsed = parse_summary_response("OVERVIEW: short\nDecisions: none made\nACTION ITEMS: - @Bob")

    assert parsed.overview == "short"
    assert parsed.decisions == "none made"
    assert parsed.action_items == "- @Bob"


def test_missing_sections_default_to_empty_string():
    parsed = parse_summary_response("Overview: Only an overview here.\n\nResources: None")

    assert parsed.overview == "Only an overview here."
    assert parsed.decisions == ""
    assert parsed.action_items == ""
    assert parsed.blockers == ""
    assert parsed.resources == "None"


@pytest.mark.parametrize("raw", [None, "", "   \n"])
def test_empty_input_gives_all_empty_sections(raw):
    assert parse_summary_response(raw) == SummaryOutput()


def test_unlabelled_text_gives_all_empty_sections():
    assert parse_summary_response("The team chatted about lunch.") == SummaryOutput()


def test_label_inside_a_sentence_is_not_a_section_start():
    parsed = parse_summary_response("Overview: the Blockers: list was reviewed twice")

    assert parsed.overview == "the Blockers: list was reviewed twice"
    assert parsed.blockers == ""


def test_labels_are_only_recognised_in_order():
    parsed = parse_summary_response("Action Items: - @Bob deploy\nOverview: out of order")

    assert parsed.overview == "out of order"
    assert parsed.action_items == ""


def test_later_label_at_line_start_inside_body_ends_section_early():
    parsed = parse_summary_response("Overview: summary\nKey Decisions:\n- keep it\nBlockers: see above\nmore text")

    assert parsed.decisions == "- keep it"
    assert parsed.blockers == "see above\nmore text"
