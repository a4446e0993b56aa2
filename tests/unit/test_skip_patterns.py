"""
Unit tests for skip-pattern loading and filtering
"""

import logging
import os

import pytest

from jarcount.worker.skip_patterns import SkipPatternSet, filter_line, load_patterns


class TestLoadPatterns:
    """Tests for reading pattern files from the shared cache"""

    def test_every_line_becomes_a_pattern(self, write_file):
        path = write_file('skip.txt', 'cat\n\\bthe\\b\n[0-9]+\n')

        patterns = load_patterns([path])

        assert patterns.sources == ('cat', '\\bthe\\b', '[0-9]+')

    def test_lines_are_kept_verbatim(self, write_file):
        """Leading and trailing spaces are part of the pattern"""
        path = write_file('skip.txt', ' a \n')

        patterns = load_patterns([path])

        assert patterns.sources == (' a ',)

    def test_patterns_from_several_files_keep_insertion_order(self, write_file):
        first = write_file('one.txt', 'b\na\n')
        second = write_file('two.txt', 'c\na\n')

        patterns = load_patterns([first, second])

        assert patterns.sources == ('b', 'a', 'c')
        assert len(patterns) == 3

    def test_unreadable_file_is_skipped_and_logged(self, write_file, temp_dir, caplog):
        good = write_file('good.txt', 'cat\n')
        missing = os.path.join(temp_dir, 'missing.txt')

        with caplog.at_level(logging.ERROR):
            patterns = load_patterns([missing, good])

        assert patterns.sources == ('cat',)
        assert 'missing.txt' in caplog.text

    def test_no_readable_files_gives_empty_set(self, temp_dir):
        patterns = load_patterns([os.path.join(temp_dir, 'nope.txt')])

        assert len(patterns) == 0
        assert not patterns

    def test_directory_instead_of_file_is_skipped(self, temp_dir):
        assert len(load_patterns([temp_dir])) == 0

    def test_invalid_regex_is_skipped(self, write_file, caplog):
        path = write_file('skip.txt', 'ok\n(unclosed\n')

        with caplog.at_level(logging.WARNING):
            patterns = load_patterns([path])

        assert patterns.sources == ('ok',)
        assert '(unclosed' in caplog.text

    def test_no_paths_gives_empty_set(self):
        assert len(load_patterns([])) == 0


class TestSkipPatternSet:
    """Tests for the loaded pattern set"""

    def test_membership_by_pattern_string(self):
        patterns = SkipPatternSet(['cat', 'dog'])

        assert 'cat' in patterns
        assert 'bird' not in patterns

    def test_set_cannot_grow(self):
        patterns = SkipPatternSet(['cat'])

        assert not hasattr(patterns, 'add')
        with pytest.raises(AttributeError):
            patterns.extra = ['dog']


class TestFilterLine:
    """Tests for removing pattern matches from a line"""

    def test_removes_substring_matches(self):
        patterns = SkipPatternSet(['cat'])

        assert filter_line('the cat sat on the mat', patterns) == 'the  sat on the mat'

    def test_removes_every_occurrence(self):
        patterns = SkipPatternSet(['a'])

        assert filter_line('banana', patterns) == 'bnn'

    def test_empty_set_is_a_no_op(self):
        assert filter_line('The Cat', SkipPatternSet()) == 'The Cat'

    def test_patterns_apply_in_insertion_order(self):
        """Overlapping patterns give results that depend on the fixed order"""
        assert filter_line('aab', SkipPatternSet(['ab', 'b'])) == 'a'
        assert filter_line('aab', SkipPatternSet(['b', 'ab'])) == 'aa'

    def test_order_dependent_result_is_reproducible(self):
        patterns = SkipPatternSet(['ab', 'b'])

        results = {filter_line('aabab', patterns) for _ in range(5)}

        assert len(results) == 1

    @pytest.mark.parametrize('sources, line', [
        (['cat'], 'the cat sat on the mat'),
        (['\\.', ','], 'Hello, world. Goodbye, world.'),
        (['\\bthe\\b', '[0-9]+'], 'the 3 cats and the 42 dogs'),
        (['x+'], 'xxx yxy zz'),
        ([], 'nothing to remove'),
    ])
    def test_filtering_twice_changes_nothing(self, sources, line):
        patterns = SkipPatternSet(sources)

        once = filter_line(line, patterns)

        assert filter_line(once, patterns) == once
