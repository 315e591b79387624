"""Tests for the reference frame composer."""

import numpy as np
import pytest

from vertiflip.cropping.frame_composer import FrameComposer
from vertiflip.cropping.types import CropDecision, Rectangle


@pytest.fixture
def white_frame():
    return np.full((1080, 1920, 3), 255, dtype=np.uint8)


@pytest.fixture
def composer():
    return FrameComposer(output_width=720)


def test_output_is_nine_by_sixteen(composer):
    assert (composer.output_width, composer.output_height) == (720, 1280)


def test_single_crop_offset_from_top(composer, white_frame):
    decision = CropDecision.single(Rectangle(555, 0, 810, 1080))
    output = composer.compose(white_frame, decision)
    assert output.shape == (1280, 720, 3)
    assert not output[:80].any()
    assert (output[80:1040] == 255).all()
    assert not output[1040:].any()


def test_stacked_regions_fill_canvas(composer, white_frame):
    height = 960 * 8 / 9
    top_y = (1080 - height) / 2
    decision = CropDecision.stacked(Rectangle(0, top_y, 960, height), Rectangle(960, top_y, 960, height))
    output = composer.compose(white_frame, decision)
    assert output.shape == (1280, 720, 3)
    assert (output == 255).all()


def test_stacked_regions_keep_order():
    frame = np.zeros((1080, 1920, 3), dtype=np.uint8)
    frame[:, 960:] = 255
    height = 960 * 8 / 9
    decision = CropDecision.stacked(Rectangle(0, 0, 960, height), Rectangle(960, 0, 960, height))
    output = FrameComposer(output_width=360).compose(frame, decision)
    assert not output[:300].any()
    assert (output[340:600] == 255).all()


def test_resize_with_solid_background(white_frame):
    composer = FrameComposer(output_width=720, padding_method="solid_color", background_color=(0, 0, 255))
    output = composer.compose(white_frame, CropDecision.resize(Rectangle(0, 0, 1920, 1080)))
    assert tuple(output[0, 0]) == (0, 0, 255)
    assert (output[640] == 255).all()


def test_resize_with_blurred_background(white_frame):
    composer = FrameComposer(output_width=360)
    output = composer.compose(white_frame, CropDecision.resize(Rectangle(0, 0, 1920, 1080)))
    assert output.shape == (640, 360, 3)
    # Background is the dimmed frame
    assert 0 < output[0, 0, 0] < 255
    assert (output[320] == 255).all()


def test_out_of_bounds_region_is_clamped(composer, white_frame):
    output = composer.compose(white_frame, CropDecision.single(Rectangle(1500, -20, 810, 1080)))
    assert output.shape == (1280, 720, 3)


@pytest.mark.parametrize("kwargs", [{"output_width": 0}, {"padding_method": "mirror"}])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        FrameComposer(**kwargs)
