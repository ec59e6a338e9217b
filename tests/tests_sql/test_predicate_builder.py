"""
==================================================
Comprehensive pytest suite for predicate_builder.py
==================================================

Sections:
---------
1. Unit tests - comparison, membership and null conditions
2. Unit tests - negation and nesting
3. Edge case tests - tolerant and strict handling of malformed conditions
4. Smoke tests

Available markers:
------------------
unit, edge_case, smoke, regression

How to Execute:
---------------
All tests:          python -m pytest tests/tests_sql/test_predicate_builder.py -v
By category:        python -m pytest tests/tests_sql/test_predicate_builder.py -m unit
"""

import pytest

from core.config import config
from core.exceptions import InvalidConditionError
from sql.predicate_builder import Connector, Operator, WhereBuilder

# ============================================================================
# UNIT TESTS - comparisons
# ============================================================================


@pytest.mark.unit
def test_equals_and_equals_joined_with_and():
    """Test two equality conditions render with AND and bind in call order."""
    where = WhereBuilder().equals('FirstName', 'Frank').and_equals('LastName', 'Harris')

    assert str(where) == 'WHERE FirstName = ? AND LastName = ?'
    assert where.get_arguments() == ['Frank', 'Harris']


@pytest.mark.unit
def test_or_equals_joined_with_or():
    """Test or_ variants join with OR."""
    where = WhereBuilder().equals('Country', 'USA').or_equals('Country', 'Canada')

    assert str(where) == 'WHERE Country = ? OR Country = ?'
    assert where.get_arguments() == ['USA', 'Canada']


@pytest.mark.unit
def test_first_condition_never_carries_connector():
    """Test an or_ call on an empty builder opens the clause without OR."""
    where = WhereBuilder().or_equals('Country', 'USA')

    assert str(where) == 'WHERE Country = ?'
    assert where.nodes[0].connector is Connector.NONE


@pytest.mark.unit
@pytest.mark.parametrize("method, sql_operator", [
    ('not_equals', '<>'),
    ('less_than', '<'),
    ('less_than_or_equal_to', '<='),
    ('greater_than', '>'),
    ('greater_than_or_equal_to', '>='),
])
def test_comparison_operators(method, sql_operator):
    """Test each comparison family renders its SQL operator."""
    where = getattr(WhereBuilder(), method)('Total', 10)

    assert str(where) == f'WHERE Total {sql_operator} ?'
    assert where.get_arguments() == [10]


@pytest.mark.unit
def test_and_or_variants_of_comparisons():
    """Test and_/or_ variants of ordering comparisons pick the right connector."""
    where = (
        WhereBuilder()
        .greater_than('Total', 1)
        .and_less_than('Total', 10)
        .or_greater_than_or_equal_to('Total', 100)
        .and_less_than_or_equal_to('Total', 200)
        .or_not_equals('BillingCountry', 'USA')
    )

    assert str(where) == (
        'WHERE Total > ? AND Total < ? OR Total >= ? AND Total <= ? OR BillingCountry <> ?'
    )
    assert where.get_arguments() == [1, 10, 100, 200, 'USA']


@pytest.mark.unit
def test_falsy_values_are_bound():
    """Test 0 and empty string are real values, not missing ones."""
    where = WhereBuilder(strict=True).equals('Total', 0).and_equals('Company', '')

    assert where.get_arguments() == [0, '']


# ============================================================================
# UNIT TESTS - membership and null checks
# ============================================================================


@pytest.mark.unit
def test_is_in_one_placeholder_per_value():
    """Test IN renders one placeholder per value and flattens its arguments."""
    where = WhereBuilder().is_in('Country', ['USA', 'Canada', 'Brazil'])

    assert str(where) == 'WHERE Country IN (?, ?, ?)'
    assert where.get_arguments() == ['USA', 'Canada', 'Brazil']


@pytest.mark.unit
def test_is_not_in_and_or_in():
    """Test NOT IN and OR IN render with their connectors."""
    where = WhereBuilder().is_not_in('GenreId', (1, 2)).or_in('MediaTypeId', [3])

    assert str(where) == 'WHERE GenreId NOT IN (?, ?) OR MediaTypeId IN (?)'
    assert where.get_arguments() == [1, 2, 3]


@pytest.mark.unit
def test_is_in_treats_string_as_single_value():
    """Test a bare string passed to IN is one value, not its characters."""
    where = WhereBuilder().is_in('Country', 'USA')

    assert str(where) == 'WHERE Country IN (?)'
    assert where.get_arguments() == ['USA']


@pytest.mark.unit
def test_null_checks_bind_no_arguments():
    """Test IS NULL / IS NOT NULL render without placeholders."""
    where = WhereBuilder().is_null('Company').or_is_not_null('Fax').and_is_null('State')

    assert str(where) == 'WHERE Company IS NULL OR Fax IS NOT NULL AND State IS NULL'
    assert where.get_arguments() == []


@pytest.mark.unit
def test_operator_values_are_sql_spelling():
    """Test operator enum values are the SQL text used in rendering."""
    assert Operator.NE.value == '<>'
    assert Operator.NOT_IN.value == 'NOT IN'
    assert Operator.IS_NOT_NULL.value == 'IS NOT NULL'


# ============================================================================
# UNIT TESTS - negation and nesting
# ============================================================================


@pytest.mark.unit
def test_not_negates_only_next_condition():
    """Test not_() applies to the following condition only."""
    where = WhereBuilder().equals('FirstName', 'Frank').not_().and_equals('LastName', 'Harris')

    assert str(where) == 'WHERE FirstName = ? AND NOT LastName = ?'
    assert where.get_arguments() == ['Frank', 'Harris']


@pytest.mark.unit
def test_not_flag_consumed_by_one_condition():
    """Test the second condition after a single not_() is left unnegated."""
    where = WhereBuilder().not_().equals('A', 1).and_equals('B', 2)

    assert str(where) == 'WHERE NOT A = ? AND B = ?'
    assert [node.negated for node in where.nodes] == [True, False]


@pytest.mark.unit
def test_not_with_callback_negates_whole_tree():
    """Test not_(callback) wraps everything the callback built in one NOT (...)."""
    where = WhereBuilder().not_(
        lambda w: w.equals('FirstName', 'Frank').and_equals('LastName', 'Harris')
    )

    assert str(where) == 'WHERE NOT (FirstName = ? AND LastName = ?)'
    assert where.get_arguments() == ['Frank', 'Harris']
    assert len(where.nodes) == 1
    assert where.nodes[0].is_group


@pytest.mark.unit
def test_not_with_callback_includes_existing_conditions():
    """Test not_(callback) on a non-empty builder negates the existing conditions too."""
    where = WhereBuilder().equals('A', 1).not_(lambda w: w.or_equals('B', 2))

    assert str(where) == 'WHERE NOT (A = ? OR B = ?)'
    assert where.get_arguments() == [1, 2]


@pytest.mark.unit
def test_not_with_empty_callback_is_noop():
    """Test not_(callback) that adds nothing leaves the builder unchanged and un-negated."""
    where = WhereBuilder().not_(lambda w: w).equals('A', 1)

    assert str(where) == 'WHERE A = ?'


@pytest.mark.edge_case
@pytest.mark.regression
def test_not_with_callback_adding_nothing_keeps_existing_conditions():
    """Test a not_ callback whose only condition is dropped does not negate earlier conditions."""
    where = WhereBuilder(strict=False).equals('CustomerId', 5).not_(lambda w: w.equals('Company', None))

    assert str(where) == 'WHERE CustomerId = ?'
    assert where.get_arguments() == [5]


@pytest.mark.unit
def test_nested_callback_parenthesizes_group():
    """Test a condition with a nested callback renders as one parenthesized group."""
    where = (
        WhereBuilder()
        .equals('FirstName', 'Frank')
        .and_equals('LastName', 'Harris', lambda w: w.or_equals('CustomerId', 16))
    )

    assert str(where) == 'WHERE FirstName = ? AND (LastName = ? OR CustomerId = ?)'
    assert where.get_arguments() == ['Frank', 'Harris', 16]


@pytest.mark.unit
def test_nested_arguments_interleave_in_render_order():
    """Test nested values bind at their node's position, before later siblings."""
    where = (
        WhereBuilder()
        .equals('A', 1, lambda w: w.or_equals('B', 2).and_equals('C', 3))
        .and_equals('D', 4)
    )

    assert str(where) == 'WHERE (A = ? OR B = ? AND C = ?) AND D = ?'
    assert where.get_arguments() == [1, 2, 3, 4]


@pytest.mark.unit
def test_nested_callback_may_return_nothing():
    """Test a nested callback that returns None still contributes its conditions."""
    def add_conditions(w):
        w.equals('C', 3)

    where = WhereBuilder().equals('A', 1).or_equals('B', 2, add_conditions)

    assert str(where) == 'WHERE A = ? OR (B = ? AND C = ?)'


@pytest.mark.unit
def test_negated_condition_with_nested_group():
    """Test NOT wraps the whole group built from a condition and its callback."""
    where = (
        WhereBuilder()
        .equals('A', 1)
        .not_()
        .and_equals('B', 2, lambda w: w.or_equals('C', 3))
    )

    assert str(where) == 'WHERE A = ? AND NOT (B = ? OR C = ?)'
    assert where.get_arguments() == [1, 2, 3]


@pytest.mark.unit
def test_negation_inside_nested_callback():
    """Test not_() inside a nested callback negates only the nested condition."""
    where = WhereBuilder().equals('A', 1, lambda w: w.not_().or_is_null('B'))

    assert str(where) == 'WHERE (A = ? OR NOT B IS NULL)'


# ============================================================================
# EDGE CASE TESTS - malformed conditions
# ============================================================================


@pytest.mark.edge_case
def test_missing_value_is_skipped_when_tolerant():
    """Test a None value no-ops in tolerant mode."""
    where = WhereBuilder(strict=False).equals('FirstName', None).and_equals('LastName', 'Harris')

    assert str(where) == 'WHERE LastName = ?'
    assert where.get_arguments() == ['Harris']


@pytest.mark.edge_case
def test_missing_column_is_skipped_when_tolerant():
    """Test an empty column name no-ops in tolerant mode."""
    where = WhereBuilder(strict=False).equals('', 1)

    assert where.is_empty
    assert str(where) == ''


@pytest.mark.edge_case
def test_empty_in_list_is_skipped_when_tolerant():
    """Test IN with no values adds nothing."""
    where = WhereBuilder(strict=False).is_in('Country', [])

    assert where.is_empty
    assert where.compile() == ('', [])


@pytest.mark.edge_case
@pytest.mark.parametrize("build", [
    lambda w: w.equals('FirstName', None),
    lambda w: w.equals(None, 'Frank'),
    lambda w: w.is_in('Country', []),
    lambda w: w.is_null(''),
])
def test_strict_mode_raises_on_malformed_condition(build):
    """Test strict builders raise InvalidConditionError instead of skipping."""
    with pytest.raises(InvalidConditionError):
        build(WhereBuilder(strict=True))


@pytest.mark.edge_case
def test_strict_mode_defaults_to_config(monkeypatch):
    """Test WhereBuilder() picks up the STRICT_CONDITIONS setting."""
    monkeypatch.setattr(config.builders, 'strict_conditions', True)

    with pytest.raises(InvalidConditionError, match="use is_null"):
        WhereBuilder().equals('Company', None)


@pytest.mark.edge_case
def test_reset_clears_conditions_and_pending_negation():
    """Test reset() empties the builder and drops a pending not_()."""
    where = WhereBuilder().equals('A', 1).not_()
    where.reset()
    where.equals('B', 2)

    assert str(where) == 'WHERE B = ?'


# ============================================================================
# SMOKE TESTS
# ============================================================================


@pytest.mark.smoke
def test_empty_builder_renders_nothing():
    """Test a fresh builder renders empty text and no arguments."""
    where = WhereBuilder()

    assert where.is_empty
    assert str(where) == ''
    assert where.compile() == ('', [])


@pytest.mark.smoke
def test_render_conditions_and_repr():
    """Test render_conditions() omits the WHERE opener and repr shows args."""
    where = WhereBuilder().equals('A', 1)

    assert where.render_conditions() == 'A = ?'
    assert repr(where) == "WhereBuilder('WHERE A = ?', args=[1])"
