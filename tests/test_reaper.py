import pytest

from frr_cli_fuzzer import reaper


class Stop(Exception):
    pass


def test_reap_waits_for_every_child_and_idles_when_none_left(monkeypatch):
    events = iter([(12, 0), (13, 139), ChildProcessError(), (14, 0), Stop()])
    waited = []
    idled = []

    def wait():
        event = next(events)
        if isinstance(event, Exception):
            raise event
        waited.append(event[0])
        return event

    monkeypatch.setattr(reaper.time, "sleep", idled.append)
    with pytest.raises(Stop):
        reaper.reap(wait=wait, idle=0.5)

    assert waited == [12, 13, 14]
    assert idled == [0.5]
