"""Use-case / operations layer.

Pure, Qt-free logic invoked by the UI: crop frame geometry and the pan-only
drag state machine. Widgets live under their feature packages
(e.g. `photo_uploader.crop`).
"""
