from __future__ import annotations

import pytest

from issuesync.parser import (
    EmptyContentError,
    ParseError,
    flag_content,
    parse_issue_file,
    renumbered_name,
    rewrite_header_number,
    split_drift_banner,
)


def test_header_line_wins_over_slug():
    f = parse_issue_file('docs/issues/007-fix-jump-bug.md', '#7: Fix jump bug\n\nSteps to reproduce\n')
    assert f.derived_title == 'Fix jump bug'
    assert f.embedded_number == 7
    assert f.file_number == 7
    assert f.number_width == 3


def test_slug_title_when_no_header():
    f = parse_issue_file('docs/issues/007-fix-jump-bug.md', 'Steps to reproduce\n')
    assert f.derived_title == 'fix jump bug'
    assert f.embedded_number is None
    assert f.body == 'Steps to reproduce\n'


@pytest.mark.parametrize(
    'first_line',
    ['# Fix jump bug', '#7 Fix jump bug', '#seven: Fix', ' text #7: Fix'],
)
def test_non_header_first_lines_fall_back_to_slug(first_line):
    f = parse_issue_file('docs/issues/007-fix-jump-bug.md', first_line + '\nbody')
    assert f.derived_title == 'fix jump bug'


def test_header_number_may_disagree_with_file_name():
    f = parse_issue_file('docs/issues/012-add-fireball-sfx.md', '#40: Add fireball SFX')
    assert f.file_number == 12
    assert f.embedded_number == 40
    assert f.derived_title == 'Add fireball SFX'


def test_byte_order_mark_before_header_is_ignored():
    f = parse_issue_file('docs/issues/1-a.md', '\ufeff#1: Title\n')
    assert f.derived_title == 'Title'


def test_invalid_name_raises():
    with pytest.raises(ParseError):
        parse_issue_file('docs/issues/test.md', 'body')


@pytest.mark.parametrize('content', ['', '   \n\t\n'])
def test_empty_content_raises(content):
    with pytest.raises(EmptyContentError):
        parse_issue_file('docs/issues/001-x.md', content)


def test_banner_only_file_counts_as_empty():
    banner = flag_content('', 5, 9, '009-foo.md')
    with pytest.raises(EmptyContentError):
        parse_issue_file('docs/issues/005-foo.md', banner)


def test_banner_is_split_from_body():
    content = flag_content('#5: Foo\nBody\n', 5, 9, '009-foo.md')
    number, rest = split_drift_banner(content)
    assert number == 9
    assert rest == '#5: Foo\nBody\n'

    f = parse_issue_file('docs/issues/005-foo.md', content)
    assert f.drift_marker == 9
    assert f.target_number == 9
    assert f.derived_title == 'Foo'
    assert f.body == '#5: Foo\nBody\n'
    assert f.content == content


def test_flagging_twice_replaces_the_banner():
    once = flag_content('Body\n', 5, 9, '009-foo.md')
    twice = flag_content(once, 5, 11, '011-foo.md')
    assert twice.count('issuesync:drift') == 1
    assert 'issue=11' in twice
    assert twice.endswith('Body\n')


def test_renumbered_name_keeps_padding():
    assert renumbered_name('005-foo.md', 9, 3) == '009-foo.md'
    assert renumbered_name('5-foo.md', 12, 1) == '12-foo.md'
    assert renumbered_name('005-foo.md', 1234, 3) == '1234-foo.md'


def test_rewrite_header_number_only_touches_header():
    assert rewrite_header_number('#5: Foo\n#5: not a header\n', 9) == '#9: Foo\n#5: not a header\n'
    assert rewrite_header_number('No header\n', 9) == 'No header\n'


def test_rewrite_header_keeps_crlf_line_endings():
    assert rewrite_header_number('#5: Foo\r\nBody\r\n', 9) == '#9: Foo\r\nBody\r\n'


def test_rewrite_header_behind_byte_order_mark():
    assert rewrite_header_number('\ufeff#5: Foo\nBody\n', 9) == '\ufeff#9: Foo\nBody\n'


def test_banner_follows_crlf_files():
    content = flag_content('#5: Foo\r\nBody\r\n', 5, 9, '009-foo.md')
    assert '\n' not in content.replace('\r\n', '')
    assert split_drift_banner(content) == (9, '#5: Foo\r\nBody\r\n')
