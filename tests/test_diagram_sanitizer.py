import pytest

from sidekick.llm.diagram_sanitizer import (
    CLASS,
    SEQUENCE,
    collapse_blank_lines,
    drop_preamble,
    extract_fenced_block,
    inject_default_direction,
    normalize_arrows,
    normalize_legacy_keyword,
    quote_node_labels,
    sanitize,
    split_statements,
    truncate_explanation,
)


def test_legacy_flowchart_with_mixed_arrows_and_prose():
    raw = (
        "Sure! Here is the diagram you asked for:\n"
        "```mermaid\n"
        "graph LR\n"
        "  A[Start] -> B{Valid?}\n"
        "  B ==> C[Done]\n"
        "  B -.-> D(Retry)\n"
        "```\n"
        "Explanation: the flow starts at A."
    )

    result = sanitize(raw, "flowchart")

    assert result == (
        "flowchart TD\n"
        'A["Start"] --> B{"Valid?"}\n'
        'B --> C["Done"]\n'
        "B --> D(Retry)"
    )
    assert "->" not in result.replace("-->", "")
    assert "==>" not in result


def test_bare_graph_gets_default_direction():
    assert sanitize("graph\nA-->B") == "flowchart TD\nA-->B"


def test_preamble_without_fences_is_dropped():
    assert sanitize("Here you go:\nflowchart LR\nA->B") == "flowchart TD\nA-->B"


def test_semicolons_split_outside_quotes():
    result = sanitize('flowchart TD; A-->B; B-->C["x;y"]')

    assert result == 'flowchart TD\nA-->B\nB-->C["x;y"]'


def test_trailing_explanation_is_cut():
    raw = "flowchart TD\nA-->B\n\nThis diagram shows how requests flow."

    assert sanitize(raw) == "flowchart TD\nA-->B"


def test_sequence_diagram_arrows_untouched():
    raw = "```mermaid\nsequenceDiagram\n  Alice->>Bob: Hello\n  Bob-->>Alice: Hi\n```"

    assert sanitize(raw, SEQUENCE) == "sequenceDiagram\nAlice->>Bob: Hello\nBob-->>Alice: Hi"


def test_class_diagram_braces_not_quoted():
    raw = "classDiagram\nclass Parser {\n  +parse(text)\n}\nNote: Parser is stateless."

    assert sanitize(raw, CLASS) == "classDiagram\nclass Parser {\n+parse(text)\n}"


@pytest.mark.parametrize("raw", ["```mermaid\n```", "Explanation: nothing to draw"])
def test_empty_result_falls_back_to_raw_text(raw):
    assert sanitize(raw) == raw


def test_extract_fenced_block_prefers_first_block():
    text = "intro\n```mermaid\nflowchart TD\nA-->B\n```\nmore\n```\nother\n```"

    assert extract_fenced_block(text) == "flowchart TD\nA-->B\n"
    assert extract_fenced_block("no fences") == "no fences"


def test_drop_preamble_keeps_text_without_keyword():
    assert drop_preamble("I could not draw it") == "I could not draw it"
    assert drop_preamble("ok:\n  sequenceDiagram\nA->>B: x") == "sequenceDiagram\nA->>B: x"


@pytest.mark.parametrize(
    "raw, category, expected",
    [
        ("Here is the flowchart:\nflowchart TD\nA-->B", "flowchart", "flowchart TD\nA-->B"),
        ("This graph shows the flow\ngraph LR\nA->B", "flowchart", "flowchart TD\nA-->B"),
        (
            "This sequence diagram shows the graph of calls.\nsequenceDiagram\nA->>B: hi",
            SEQUENCE,
            "sequenceDiagram\nA->>B: hi",
        ),
        (
            "The flowchart below is a class diagram:\nclassDiagram\nclass A",
            CLASS,
            "classDiagram\nclass A",
        ),
    ],
)
def test_keywords_in_prose_do_not_start_the_diagram(raw, category, expected):
    assert sanitize(raw, category) == expected


def test_drop_preamble_ignores_keyword_mid_sentence():
    text = "Below is a flowchart of the graph walk\nflowchart LR\nA-->B"

    assert drop_preamble(text) == "flowchart LR\nA-->B"


def test_arrows_inside_labels_are_kept():
    assert normalize_arrows('A[x -> y] -> B{a ==> b} -> C("p -> q")') == 'A[x -> y] --> B{a ==> b} --> C("p -> q")'
    assert normalize_arrows("A -->|send -> ack| B -.-> D(retry -> wait)") == "A -->|send -> ack| B --> D(retry -> wait)"


def test_label_arrows_survive_full_pipeline():
    assert sanitize("flowchart TD\nA[x -> y] -> B") == 'flowchart TD\nA["x -> y"] --> B'


def test_normalize_legacy_keyword_keeps_direction():
    assert normalize_legacy_keyword("graph RL\nA-->B") == "flowchart RL\nA-->B"
    assert normalize_legacy_keyword("flowchart LR") == "flowchart LR"


def test_inject_default_direction_only_for_bare_header():
    assert inject_default_direction("flowchart\nA-->B") == "flowchart TD\n\nA-->B"
    assert inject_default_direction("flowchart BT\nA-->B") == "flowchart BT\nA-->B"


def test_normalize_arrows():
    assert normalize_arrows("A -> B ---> C -.-> D ==> E --> F") == "A --> B --> C --> D --> E --> F"


def test_split_statements():
    assert split_statements('A-->B;B-->C["a;b"]') == 'A-->B\nB-->C["a;b"]'


def test_quote_node_labels_leaves_quoted_labels():
    assert quote_node_labels('A[Load config] --> B["already"]') == 'A["Load config"] --> B["already"]'
    assert quote_node_labels("C{Has items?}") == 'C{"Has items?"}'


def test_truncate_explanation_markers():
    assert truncate_explanation("flowchart TD\nA-->B\n> Legend: colors") == "flowchart TD\nA-->B\n"
    assert truncate_explanation("flowchart TD\nA-->B\nKey: colors") == "flowchart TD\nA-->B\n"
    assert truncate_explanation("A-->B\nHere's a breakdown of the steps") == "A-->B\n"


def test_collapse_blank_lines():
    assert collapse_blank_lines("  a  \n\n   \n b") == "a\nb"
