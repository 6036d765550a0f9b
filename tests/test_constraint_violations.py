from shiftroster.constraint_violations import HardConstraintViolationDetector, ViolationType, analyze_gap_patterns
from shiftroster.grid import ScheduleGrid
from shiftroster.models import GenerationConfig, ShiftType

M, E, N = ShiftType.MORNING, ShiftType.EVENING, ShiftType.NIGHT


def violation_types(workers, assignments):
    grid = ScheduleGrid.from_assignments(assignments)
    return {v.violation_type for v in HardConstraintViolationDetector(workers).detect_violations(grid)}


def test_clean_grid(make_worker):
    workers = [make_worker("A"), make_worker("B")]
    assert violation_types(workers, {(0, M): "A", (0, N): "B", (1, E): "B", (2, M): "A"}) == set()


def test_weekly_cap(make_worker):
    assert ViolationType.WEEKLY_CAP in violation_types([make_worker("A")], {(d, M): "A" for d in range(7)})


def test_night_rules(make_worker):
    found = violation_types([make_worker("A")], {(0, N): "A", (1, N): "A", (3, N): "A"})
    assert ViolationType.CONSECUTIVE_NIGHTS in found
    assert ViolationType.NIGHT_CAP in found


def test_rest_rule(make_worker):
    assert violation_types([make_worker("A")], {(0, N): "A", (1, M): "A"}) == {ViolationType.REST_RULE}


def test_double_booking(make_worker):
    found = violation_types([make_worker("A")], {(0, M): "A", (0, E): "A"})
    assert ViolationType.DOUBLE_BOOKING in found


def test_888_pattern(make_worker):
    workers = [make_worker(n) for n in "ABC"]
    found = violation_types(workers, {(0, N): "A", (1, M): "B", (1, E): "A", (1, N): "C", (2, M): "A"})
    assert found == {ViolationType.PATTERN_888}


def test_preferences_and_unknown_workers(make_worker):
    found = violation_types([make_worker("A", shifts=[M])], {(0, N): "A", (1, M): "Ghost"})
    assert found == {ViolationType.NOT_PREFERRED, ViolationType.UNKNOWN_WORKER}


def test_critical_violations_first(make_worker):
    grid = ScheduleGrid.from_assignments({(0, N): "A", (1, M): "A"})
    violations = HardConstraintViolationDetector([make_worker("A", shifts=[N])]).detect_violations(grid)
    assert [v.severity for v in violations] == ["CRITICAL", "HIGH"]


def test_analyze_gap_patterns():
    grid = ScheduleGrid.from_assignments({(0, M): "A", (0, N): "A", (1, E): "A", (2, M): "B", (3, M): "B"})
    analysis = analyze_gap_patterns(grid, ["A", "B", "C"])
    assert analysis.worker_gap_counts == {"A": 2, "B": 0, "C": 0}
    assert analysis.total_single_gaps == 2
    assert [(g.first_index, g.second_index) for g in analysis.gaps] == [(0, 2), (2, 4)]


def test_days_in_three_only_when_configured(make_worker):
    grid = ScheduleGrid.from_assignments({(3, E): "A", (4, E): "A", (5, E): "A"})
    workers = [make_worker("A")]
    assert HardConstraintViolationDetector(workers).detect_violations(grid) == []

    violations = HardConstraintViolationDetector(workers, GenerationConfig(max_days_in_three=2)).detect_violations(grid)
    assert [v.violation_type for v in violations] == [ViolationType.CLUSTERING]
    assert violations[0].current_value == 3
