import io
import logging
import datetime
import pathlib

import numpy as np
import pytest

from deltri import Triangulation


LOG_DIR = pathlib.Path(__file__).parent / "test-logs"


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    # Attach the TestReport (with .outcome) to the item so fixtures can see the
    # outcome in teardown.
    outcome = yield
    rep = outcome.get_result()
    setattr(item, "rep_" + rep.when, rep)


@pytest.fixture(autouse=True)
def capture_test_logs(request):
    """Capture deltri logging for each test and write it to a file only when
    the test fails.
    """
    log = logging.getLogger('deltri')
    buf = io.StringIO()
    handler = logging.StreamHandler(buf)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    log.addHandler(handler)
    prev_level = log.level
    log.setLevel(logging.DEBUG)

    try:
        yield
    finally:
        log.removeHandler(handler)
        log.setLevel(prev_level)

        rep = getattr(request.node, "rep_call", None)
        if rep is not None and getattr(rep, "outcome", None) == "failed":
            nodeid = request.node.nodeid.replace("::", "__").replace("/", "_")
            ts = datetime.datetime.now().strftime("%Y%m%dT%H%M%S")
            try:
                LOG_DIR.mkdir(exist_ok=True)
                with open(LOG_DIR / "{}__{}.log".format(nodeid, ts), "w", encoding="utf-8") as f:
                    f.write("=== Test: {}\n".format(request.node.nodeid))
                    f.write("=== Timestamp: {}\n\n".format(ts))
                    f.write(buf.getvalue())
            except OSError:
                # Never fail teardown because the log file could not be written
                pass


@pytest.fixture
def make_tri():
    """Factory for triangulations that check themselves after every mutation."""
    def _make(**overrides):
        overrides.setdefault('validate_after_insert', True)
        overrides.setdefault('locator_seed', 1234)
        return Triangulation(**overrides)
    return _make


@pytest.fixture
def rng():
    return np.random.default_rng(20240521)
