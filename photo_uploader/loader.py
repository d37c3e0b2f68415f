import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from PySide6.QtCore import QObject, Signal

from .decoder import decode_image
from .logger import get_logger

_logger = get_logger("loader")


class PhotoLoader(QObject):
    """Decode uploaded photo bytes off the UI thread.

    Only the most recent request is ever delivered. `cancel()` drops the
    in-flight request so a decode finishing after its dialog closed is ignored.

    decode_fn takes the encoded bytes and returns (source|None, error|None).
    """

    photo_decoded = Signal(int, object)  # request_id, SourceImage
    photo_failed = Signal(int, str)  # request_id, message

    def __init__(self, decode_fn: Callable[[bytes], tuple] = decode_image, parent: QObject | None = None):
        super().__init__(parent)
        self._decode_fn = decode_fn
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="photo-decode")
        self._next_id = 1
        self._latest_id: int | None = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._latest_id is not None

    def request_load(self, data: bytes) -> int:
        with self._lock:
            req_id = self._next_id
            self._next_id += 1
            self._latest_id = req_id
        _logger.debug("request_load id=%s bytes=%d", req_id, len(data))
        future = self._pool.submit(self._decode_fn, data)
        future.add_done_callback(lambda f, rid=req_id: self._on_decode_finished(rid, f))
        return req_id

    def cancel(self) -> None:
        with self._lock:
            if self._latest_id is not None:
                _logger.debug("cancel id=%s", self._latest_id)
            self._latest_id = None

    def _on_decode_finished(self, req_id: int, future: Future) -> None:
        try:
            source, error = future.result()
        except Exception as e:
            _logger.exception("decode future failed")
            source, error = None, str(e)

        with self._lock:
            if req_id != self._latest_id:
                _logger.debug("dropping stale decode result id=%s", req_id)
                return
            self._latest_id = None

        if source is None:
            self.photo_failed.emit(req_id, error or "Could not read the image")
        else:
            self.photo_decoded.emit(req_id, source)

    def shutdown(self) -> None:
        self.cancel()
        self._pool.shutdown(wait=False, cancel_futures=True)
