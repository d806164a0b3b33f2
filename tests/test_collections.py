from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import run_case

SCENARIOS = [
    # Arrays
    pytest.param("NSArray *a = @[1, 2, 3]; print a[0] + a[2];", "4\n", id="literal-index"),
    pytest.param("print @[1, 2];", "[1, 2]\n", id="print-array"),
    pytest.param('print @[@"a", @"b"];', "[a, b]\n", id="print-array-of-strings"),
    pytest.param("print @[];", "[]\n", id="print-empty-array"),
    pytest.param("print @[1, nil, 2].count();", "2\n", id="literal-drops-nil"),
    pytest.param(
        "NSArray *a = array(3); print a.count(); print a[0] == nil; a[1] = 7; print a[1];",
        "3\nYES\n7\n",
        id="array-builtin",
    ),
    pytest.param("print array(0).count(); print array(-1).count();", "0\n0\n", id="array-builtin-empty"),
    pytest.param(
        "print 1; NSArray *a = array(1 / 0); print a.count(); print array(0 / 0).count(); print 2;",
        "1\n0\n0\n2\n",
        id="array-builtin-non-finite-size",
    ),
    pytest.param(
        "print 1; NSArray *a = array(1000 * 1000 * 1000); print 2;",
        "1\n\nERROR",
        id="array-builtin-too-large",
    ),
    pytest.param(
        "NSArray *a = @[1, 2, 3]; print a.pop(); print a.count(); print [a count];",
        "3\n2\n2\n",
        id="pop-and-count",
    ),
    pytest.param("NSArray *a = @[]; print a.pop() == nil;", "YES\n", id="pop-empty"),
    pytest.param(
        "NSArray *a = @[1]; print a[5] == nil; print a[-1] == nil; a[9] = 2; print a.count();",
        "YES\nYES\n1\n",
        id="out-of-range",
    ),
    pytest.param('NSArray *a = @[1]; print a[@"x"] == nil;', "YES\n", id="non-number-index"),
    pytest.param("print @[10, 20][1.7];", "20\n", id="fractional-index-truncates"),
    pytest.param(
        "NSArray *a = @[1, 2]; NSArray *b = a; b[0] = 9; print a[0];",
        "9\n",
        id="arrays-are-shared",
    ),
    pytest.param(
        "NSArray *a = @[1]; a[0] += 5; print a[0]; a[0]++; print a[0];",
        "6\n7\n",
        id="compound-on-cell",
    ),
    pytest.param(
        "NSArray *m = @[@[1, 2], @[3, 4]]; print m[1][0];",
        "3\n",
        id="nested-arrays",
    ),
    pytest.param(
        dedent(
            """\
            NSArray *a = @[1, 2, 3, 4];
            int sum = 0;
            for (int i = 0; i < a.count(); i++) { sum += a[i]; }
            print sum;
            """
        ),
        "10\n",
        id="sum-in-loop",
    ),
    pytest.param("print 2 * @[3][0];", "6\n", id="index-as-multiplicative-operand"),
    # Strings
    pytest.param(
        'string s = @"hey"; print s[1]; print s.count(); print [s count];',
        "e\n3\n3\n",
        id="string-index-and-count",
    ),
    pytest.param('print @"ab"[5] == nil;', "YES\n", id="string-out-of-range"),
    pytest.param('string s = @"ab"; s[0] = @"x"; print s;', "ab\n", id="strings-are-immutable"),
    pytest.param("print (5).count() == nil;", "YES\n", id="no-methods-on-numbers"),
]


@pytest.mark.parametrize("source, expected", SCENARIOS)
def test_collections(source: str, expected: str) -> None:
    run_case(source, expected)
