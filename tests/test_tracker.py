import pytest

from podwatch.events import CreatePod, DeletePod, ModPod
from podwatch.pods import (
    POD_READY,
    ConditionStatus,
    ObjectMeta,
    Pod,
    PodCondition,
    PodPhase,
    PodStatus,
)
from podwatch.tracker import PodTracker


def gen_pod(name, ip, labels, ready, phase):
    status = ConditionStatus.TRUE if ready else ConditionStatus.FALSE
    return Pod(
        metadata=ObjectMeta(name=name, namespace="default", labels=labels),
        status=PodStatus(
            phase=phase,
            conditions=[PodCondition(type=POD_READY, status=status)],
            pod_ip=ip,
        ),
    )


LABELS = {"app": "fimbat"}


@pytest.mark.parametrize(
    "pods, surviving, expected_dead",
    [
        (
            [("foobar", "10.42.42.42", True, PodPhase.RUNNING)],
            ["foobar"],
            set(),
        ),
        (
            [
                ("foobar", "10.42.42.42", True, PodPhase.RUNNING),
                ("foobar2", "10.42.43.41", True, PodPhase.RUNNING),
            ],
            ["foobar"],
            {"foobar2"},
        ),
        (
            [
                ("foobar", "10.42.42.42", False, PodPhase.RUNNING),
                ("foobar2", "10.42.43.41", False, PodPhase.RUNNING),
            ],
            ["foobar"],
            {"foobar2"},
        ),
        (
            [
                ("foobar", "10.42.42.42", False, PodPhase.RUNNING),
                ("foobar2", "10.42.43.41", False, PodPhase.RUNNING),
            ],
            ["foobar"],
            {"foobar2"},
        ),
    ],
    ids=["one_ready", "two_ready", "two_not_ready", "two_not_ready_two_not_running"],
)
def test_pod_tracker_create_delete(pods, surviving, expected_dead):
    tracker = PodTracker()
    for name, ip, ready, phase in pods:
        pod = gen_pod(name, ip, LABELS, ready, phase)
        tracker.record_event(
            CreatePod(pod_name=name, resource_version="fizzle", definition=pod)
        )

    dead = tracker.find_remove_dead_pods(surviving)
    assert dead == expected_dead
    assert set(tracker.last_status) == set(surviving)


def test_record_event_tracks_version_and_definition():
    tracker = PodTracker()
    pod = gen_pod("foobar", "10.42.42.42", LABELS, True, PodPhase.RUNNING)
    tracker.record_event(CreatePod(pod_name="foobar", resource_version="fizzle", definition=pod))
    assert tracker.last_version == "fizzle"
    assert tracker.last_status == {"foobar": pod}


def test_record_delete_removes_pod():
    tracker = PodTracker()
    pod = gen_pod("foobar", "10.42.42.42", LABELS, True, PodPhase.RUNNING)
    tracker.record_event(CreatePod(pod_name="foobar", resource_version="fizzle", definition=pod))
    tracker.record_event(DeletePod(pod_name="foobar", resource_version="fozzle"))
    assert tracker.last_status == {}
    assert tracker.last_version == "fozzle"


def test_record_delete_of_unknown_pod_is_harmless():
    tracker = PodTracker()
    tracker.record_event(DeletePod(pod_name="foobar", resource_version="fizzle"))
    assert tracker.last_status == {}
    assert tracker.last_version == "fizzle"


def test_synthesize_new_pod_gives_create():
    tracker = PodTracker()
    pod = gen_pod("foobar", "10.42.42.42", LABELS, True, PodPhase.RUNNING)
    pod.metadata.resource_version = "fizzle"
    event = tracker.synthesize_event(pod)
    assert event == CreatePod(pod_name="foobar", resource_version="fizzle", definition=pod)
    assert tracker.last_status["foobar"] is pod
    assert tracker.last_version == "fizzle"


def test_synthesize_unchanged_pod_gives_none():
    tracker = PodTracker()
    tracker.synthesize_event(gen_pod("foobar", "10.42.42.42", LABELS, True, PodPhase.RUNNING))
    again = gen_pod("foobar", "10.42.42.42", LABELS, True, PodPhase.RUNNING)
    assert tracker.synthesize_event(again) is None
    assert tracker.last_status["foobar"] is again


def test_synthesize_changed_pod_gives_mod():
    tracker = PodTracker()
    tracker.synthesize_event(gen_pod("foobar", "10.42.42.42", LABELS, False, PodPhase.RUNNING))
    changed = gen_pod("foobar", "10.42.42.42", LABELS, True, PodPhase.RUNNING)
    event = tracker.synthesize_event(changed)
    assert isinstance(event, ModPod)
    assert event.definition is changed
    assert event.is_ready() is True


def test_synthesize_keeps_version_when_pod_has_none():
    tracker = PodTracker(last_version="fizzle")
    event = tracker.synthesize_event(gen_pod("foobar", "10.42.42.42", LABELS, True, PodPhase.RUNNING))
    assert event.resource_version == "fizzle"
    assert tracker.last_version == "fizzle"


def test_find_remove_dead_pods_with_unknown_names():
    tracker = PodTracker()
    tracker.synthesize_event(gen_pod("foobar", "10.42.42.42", LABELS, True, PodPhase.RUNNING))
    dead = tracker.find_remove_dead_pods(["foobar", "foobar3"])
    assert dead == set()
    assert list(tracker.last_status) == ["foobar"]