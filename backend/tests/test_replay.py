from crux.execution.plan import WorkoutPlan, merge_variables
from crux.execution.replay import Phase, replay
from crux.execution.steps import RestKind, StepRecord, Summary
from crux.models import StepKind

PLAN = WorkoutPlan(sets=2, reps=2, rep_seconds=5, rest_seconds=5, set_rest_seconds=10)

def rep(set_no, rep_no, ms=5000):
    return StepRecord(kind=StepKind.rep, set_number=set_no, rep_number=rep_no, completed_reps=1,
                      actual_duration_ms=ms)

def rest(set_no, rep_no, kind, ms=5000):
    return StepRecord(kind=StepKind.rest, set_number=set_no, rep_number=rep_no, note=kind.value,
                      actual_duration_ms=ms)

def skipped(set_no):
    return StepRecord(kind=StepKind.set_skipped, set_number=set_no, actual_duration_ms=0)

def test_merge_prefers_overrides():
    planned = merge_variables({"sets": 3, "reps": 6, "restSeconds": 60}, {"reps": 8, "sets": None})
    assert planned["sets"] == 3
    assert planned["reps"] == 8
    assert planned["restSeconds"] == 60
    assert planned["durationSeconds"] is None

def test_plan_defaults_and_clamping():
    plan = WorkoutPlan.from_planned({"sets": 0, "reps": "abc", "restSeconds": 20})
    assert plan.sets == 3
    assert plan.reps == 6
    assert plan.rep_seconds == 30
    assert plan.rest_seconds == 20
    assert plan.set_rest_seconds == 20
    assert WorkoutPlan.from_planned({"sets": 2.7}).sets == 2

def test_no_steps_awaits_start():
    assert replay(PLAN, []).phase is Phase.awaiting_start

def test_rep_inside_set_resumes_in_rest_between_reps():
    pos = replay(PLAN, [rep(1, 1)])
    assert (pos.phase, pos.set_number, pos.rep_number) == (Phase.rest, 1, 1)
    assert pos.rest_kind is RestKind.between_reps

def test_last_rep_of_set_resumes_in_set_rest():
    pos = replay(PLAN, [rep(1, 1), rest(1, 1, RestKind.between_reps), rep(1, 2)])
    assert pos.phase is Phase.rest
    assert pos.rest_kind is RestKind.between_sets

def test_rest_moves_to_next_rep_or_set():
    pos = replay(PLAN, [rep(1, 1), rest(1, 1, RestKind.between_reps)])
    assert (pos.phase, pos.set_number, pos.rep_number) == (Phase.rep, 1, 2)
    pos = replay(PLAN, [rep(1, 2), rest(1, 2, RestKind.between_sets)])
    assert (pos.phase, pos.set_number, pos.rep_number) == (Phase.rep, 2, 1)

def test_final_rep_completes():
    assert replay(PLAN, [rep(2, 2)]).phase is Phase.completed

def test_skipped_sets():
    pos = replay(PLAN, [skipped(1)])
    assert (pos.phase, pos.set_number, pos.rep_number) == (Phase.rep, 2, 1)
    assert replay(PLAN, [skipped(1), skipped(2)]).phase is Phase.completed

def test_summary_counts():
    steps = [rep(1, 1), rest(1, 1, RestKind.between_reps, ms=4000), rep(1, 2), skipped(2)]
    s = Summary.of(steps, PLAN.reps)
    assert s.completed_reps == 2
    assert s.completed_sets == 1
    assert s.skipped_sets == 1
    assert s.total_rep_duration_ms == 10000
    assert s.total_rest_duration_ms == 4000

def test_full_first_set_resumes_at_second_set():
    steps = [
        rep(1, 1),
        rest(1, 1, RestKind.between_reps),
        rep(1, 2),
        rest(1, 2, RestKind.between_sets),
    ]
    pos = replay(PLAN, steps)
    assert (pos.phase, pos.set_number, pos.rep_number) == (Phase.rep, 2, 1)
