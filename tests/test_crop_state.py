from photo_uploader.app.state.crop_state import CropState
from photo_uploader.ops.crop_controller import CropRect


def test_defaults():
    st = CropState()
    assert st.active is False
    assert st.dragging is False
    assert (st.imageWidth, st.imageHeight) == (0, 0)
    assert st.rect == CropRect(0.0, 0.0, 0.0, 0.0)


def test_setters_emit_only_on_change(qtbot):
    st = CropState()
    with qtbot.waitSignal(st.activeChanged) as blocker:
        st._set_active(True)
    assert blocker.args == [True]
    with qtbot.assertNotEmitted(st.activeChanged):
        st._set_active(True)

    with qtbot.waitSignal(st.draggingChanged):
        st._set_dragging(True)
    with qtbot.assertNotEmitted(st.draggingChanged):
        st._set_dragging(1)


def test_image_size_emits_per_axis(qtbot):
    st = CropState()
    st._set_image_size(100, 50)
    with qtbot.assertNotEmitted(st.imageWidthChanged), qtbot.waitSignal(st.imageHeightChanged) as blocker:
        st._set_image_size(100, 80)
    assert blocker.args == [80]
    assert (st.imageWidth, st.imageHeight) == (100, 80)


def test_rect_changed_carries_floats(qtbot):
    st = CropState()
    rect = CropRect(1, 2, 30, 40)
    with qtbot.waitSignal(st.rectChanged) as blocker:
        st._set_rect(rect)
    assert blocker.args == [1.0, 2.0, 30.0, 40.0]
    with qtbot.assertNotEmitted(st.rectChanged):
        st._set_rect(CropRect(1.0, 2.0, 30.0, 40.0))
    assert st.rect == rect
