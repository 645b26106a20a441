"""Streamlit progress banner for paged issue fetches."""

from __future__ import annotations

import streamlit as st


class ProgressReporter:
    """Info banner, status line and progress bar driven by GraphService callbacks."""

    def __init__(self, title: str):
        self._box = st.container()
        self._box.info(title)
        self._status = self._box.empty()
        self._bar = self._box.progress(0.0)
        self._done = False

    def callback(self, message: str, fetched: int | None = None, total: int | None = None) -> None:
        if self._done:
            return
        if fetched is not None and total:
            self._status.write(f"{message}: {fetched} / {total}")
            self._bar.progress(min(max(fetched / total, 0.0), 1.0))
        else:
            # Total unknown until the first page arrives
            self._status.write(message)
            self._bar.progress(0.0)

    def complete(self, message: str) -> None:
        if self._done:
            return
        self._bar.progress(1.0)
        self._box.success(message)
        self._done = True

    def error(self, message: str) -> None:
        if self._done:
            return
        self._box.error(message)
        self._done = True
