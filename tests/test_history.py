"""Tests for the history buffer."""

from vertiflip.cropping.types import CropDecision, Rectangle
from vertiflip.smoothing.history import HistoryBuffer


def make_decision(x):
    return CropDecision.single(Rectangle(x, 0, 10, 10))


def test_empty_buffer():
    buffer = HistoryBuffer()
    assert buffer.is_empty()
    assert len(buffer) == 0
    assert buffer.pop_front() is None
    assert buffer.peek_front() is None
    assert buffer.peek_back() is None


def test_fifo_order():
    buffer = HistoryBuffer()
    for i in range(3):
        buffer.push(make_decision(i), f"frame{i}", i)

    assert buffer.peek_front().frame == "frame0"
    assert buffer.peek_back().frame == "frame2"
    assert buffer.pop_front().object_count == 0
    assert len(buffer) == 2


def test_drain_empties_oldest_first():
    buffer = HistoryBuffer()
    for i in range(3):
        buffer.push(make_decision(i), f"frame{i}", 1)

    assert [record.frame for record in buffer.drain()] == ["frame0", "frame1", "frame2"]
    assert buffer.is_empty()
