"""
Allocator State Validation Tests

Tests configuration validation, derived matrices, snapshots and invariants.
"""

import sys
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.allocator_state import AllocatorState
from models.errors import MalformedConfigurationError, InvalidRequestError


TEXTBOOK_AVAILABLE = [3, 3, 2]
TEXTBOOK_MAX = [[7, 5, 3], [3, 2, 2], [9, 0, 2], [2, 2, 2], [4, 3, 3]]
TEXTBOOK_ALLOCATION = [[0, 1, 0], [2, 0, 0], [3, 0, 2], [2, 1, 1], [0, 0, 2]]


def textbook_state() -> AllocatorState:
    return AllocatorState.from_config(TEXTBOOK_AVAILABLE, TEXTBOOK_MAX, TEXTBOOK_ALLOCATION)


def _expect_malformed(available, max_demand, allocation, label):
    try:
        AllocatorState.from_config(available, max_demand, allocation)
    except MalformedConfigurationError as e:
        print(f"  ✓ {label}: {e}")
        return
    assert False, f"{label} should have been rejected"


def test_from_config_derives_need_and_total():
    """Need = Max - Allocation, Total = Available + column sums."""
    print("\n" + "="*60)
    print("TEST 1: Configuration")
    print("="*60)

    state = textbook_state()

    assert state.num_processes == 5, "Should have 5 processes"
    assert state.num_resources == 3, "Should have 3 resource types"
    assert state.need_matrix.tolist() == [
        [7, 4, 3], [1, 2, 2], [6, 0, 0], [0, 1, 1], [4, 3, 1]
    ], "Need matrix should be Max - Allocation"
    assert state.total_vector.tolist() == [10, 5, 7], "Total should be Available + allocated"
    assert state.terminated == set()
    print("  ✓ Need and Total derived correctly")

    state.assert_invariants("after construction")
    print("  ✓ Invariants hold")


def test_from_config_copies_input():
    """The state must not alias caller-owned lists."""
    available = list(TEXTBOOK_AVAILABLE)
    allocation = [list(row) for row in TEXTBOOK_ALLOCATION]
    state = AllocatorState.from_config(available, TEXTBOOK_MAX, allocation)

    state.available_vector[0] = 0
    state.allocation_matrix[0][0] = 5

    assert available == [3, 3, 2]
    assert allocation[0] == [0, 1, 0]


def test_malformed_configurations():
    """Dimension mismatches and Allocation > Max are fatal at construction."""
    print("\n" + "="*60)
    print("TEST 2: Malformed Configurations")
    print("="*60)

    _expect_malformed([3, 3], TEXTBOOK_MAX, TEXTBOOK_ALLOCATION, "Available too short")
    _expect_malformed(TEXTBOOK_AVAILABLE, TEXTBOOK_MAX, TEXTBOOK_ALLOCATION[:4], "Row count mismatch")
    _expect_malformed(TEXTBOOK_AVAILABLE, [[7, 5, 3], [3, 2]], [[0, 1, 0], [2, 0]], "Ragged rows")
    _expect_malformed([3, -1, 2], TEXTBOOK_MAX, TEXTBOOK_ALLOCATION, "Negative available")
    _expect_malformed([3.5, 3, 2], TEXTBOOK_MAX, TEXTBOOK_ALLOCATION, "Non-integer available")
    _expect_malformed([[3, 3, 2]], TEXTBOOK_MAX, TEXTBOOK_ALLOCATION, "2-D available")
    _expect_malformed(TEXTBOOK_AVAILABLE, [7, 5, 3], [0, 1, 0], "1-D max")
    _expect_malformed(
        TEXTBOOK_AVAILABLE,
        [[7, 5, 3], [3, 2, 2]],
        [[0, 1, 0], [4, 0, 0]],
        "Allocation exceeds Max"
    )


def test_malformed_configuration_is_value_error():
    assert issubclass(MalformedConfigurationError, ValueError)
    assert issubclass(InvalidRequestError, ValueError)


def test_zero_processes_allowed():
    state = AllocatorState.from_config([2, 1], [], [])

    assert state.num_processes == 0
    assert state.num_resources == 2
    assert state.need_matrix.shape == (0, 2)
    state.assert_invariants("empty system")


def test_validate_pid_and_vectors():
    """Call arguments are checked against the state's dimensions."""
    state = textbook_state()

    assert state.validate_pid(4) == 4
    assert state.validate_pid(np.int64(2)) == 2

    for bad_pid in (-1, 5, True, "1", 1.0):
        try:
            state.validate_pid(bad_pid)
        except InvalidRequestError:
            continue
        assert False, f"pid {bad_pid!r} should be rejected"

    assert state.as_request_vector([1, 0, 2]).tolist() == [1, 0, 2]
    for bad_vector in ([1, 0], [1, -1, 0], [1, 0.5, 0], [[1, 0, 2]]):
        try:
            state.as_request_vector(bad_vector)
        except InvalidRequestError:
            continue
        assert False, f"vector {bad_vector!r} should be rejected"


def test_snapshot_and_restore():
    """Snapshots are independent copies and restore exactly."""
    print("\n" + "="*60)
    print("TEST 3: Snapshot / Restore")
    print("="*60)

    state = textbook_state()
    snapshot = state.snapshot()

    state.available_vector -= 1
    state.allocation_matrix[1] += 1
    state.need_matrix[1] -= 1
    state.terminated.add(3)

    assert snapshot['available_vector'].tolist() == [3, 3, 2], "Snapshot must not alias live state"

    state.restore(snapshot)
    assert state.available_vector.tolist() == [3, 3, 2]
    assert state.allocation_matrix.tolist() == TEXTBOOK_ALLOCATION
    assert state.need_matrix[1].tolist() == [1, 2, 2]
    assert state.terminated == set()
    state.assert_invariants("after restore")
    print("  ✓ State restored bit-for-bit")


def test_assert_invariants_detects_violations():
    """Broken accounting must be caught."""
    state = textbook_state()
    state.available_vector[0] += 1
    try:
        state.assert_invariants("conservation test")
    except AssertionError as e:
        assert "conservation" in str(e)
    else:
        assert False, "Should have detected broken resource conservation"

    state = textbook_state()
    state.need_matrix[0][0] -= 1
    try:
        state.assert_invariants("need test")
    except AssertionError as e:
        assert "Allocation + Need != Max" in str(e)
    else:
        assert False, "Should have detected Allocation + Need != Max"


def test_display():
    state = textbook_state()
    output = state.display()

    assert "ALLOCATOR STATE" in output
    assert "Need Matrix (Max - Allocation):" in output
    assert "  P4:   4   3   1" in output
    print(output)


def main():
    """Run all allocator state tests."""
    tests = [
        test_from_config_derives_need_and_total,
        test_from_config_copies_input,
        test_malformed_configurations,
        test_malformed_configuration_is_value_error,
        test_zero_processes_allowed,
        test_validate_pid_and_vectors,
        test_snapshot_and_restore,
        test_assert_invariants_detects_violations,
        test_display,
    ]

    try:
        for test in tests:
            test()
    except AssertionError as e:
        print(f"\n❌ TEST FAILED: {e}")
        return 1

    print("\n✅ ALL ALLOCATOR STATE TESTS PASSED")
    return 0


if __name__ == '__main__':
    sys.exit(main())
