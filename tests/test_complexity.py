import pytest

from conftest import write_file
from sidekick.analysis.complexity import (
    TOP_COMPLEX_FILES,
    analyze_complexity,
    count_decision_points,
    score_complexity,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("if (a && b) { return x ? y : z; }", 4),
        ("const x = 1;", 1),
        ("for (const f of files) { try {} catch (e) {} }", 3),
        ("switch (k) { case 1: case 2: }", 3),
        ("while (a || b) {}", 3),
        ("format(information, notify)", 1),
    ],
)
def test_score_complexity(text, expected):
    assert score_complexity(text) == expected


def test_count_decision_points_counts_every_token():
    assert count_decision_points("if if ??") == 4


@pytest.fixture
def repo_files(tmp_path):
    big = write_file(tmp_path / "big.js", "if (a) {}\n" * 10)
    mid = write_file(tmp_path / "mid.js", "while (x) {}\nfor (;;) {}\n")
    small = write_file(tmp_path / "small.js", "let x = 1;\n")
    return [small, big, mid]


def test_average_over_all_files_when_under_top_n(repo_files):
    report = analyze_complexity(repo_files, top_n=20)

    assert report.average_complexity == 5.0
    assert [(f.name, f.complexity) for f in report.top_complex_files] == [
        ("big.js", 11),
        ("mid.js", 3),
        ("small.js", 1),
    ]


def test_only_largest_files_are_scored(repo_files):
    report = analyze_complexity(repo_files, top_n=2)

    assert report.average_complexity == 7.0
    assert [f.name for f in report.top_complex_files] == ["big.js", "mid.js"]


def test_average_rounds_to_two_decimals(tmp_path):
    files = [
        write_file(tmp_path / "a.js", "if (a) {}\n"),
        write_file(tmp_path / "b.js", "let b = 2;\n"),
        write_file(tmp_path / "c.js", "let c = 3;\n"),
    ]

    assert analyze_complexity(files).average_complexity == 1.33


def test_report_lists_at_most_ten_files(tmp_path):
    files = [write_file(tmp_path / f"f{i}.js", "if (x) {}\n" * (i + 1)) for i in range(12)]

    report = analyze_complexity(files)

    assert len(report.top_complex_files) == TOP_COMPLEX_FILES
    assert report.top_complex_files[0].name == "f11.js"


def test_empty_repository():
    report = analyze_complexity([])

    assert report.average_complexity == 0
    assert report.to_dict() == {"averageComplexity": 0, "topComplexFiles": []}


def test_top_n_must_be_positive(repo_files):
    with pytest.raises(ValueError):
        analyze_complexity(repo_files, top_n=0)
