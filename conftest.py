import pytest

import rpn_repl

RPN_ENV_VARS = ("RPN_PROMPT", "RPN_HISTORY_FILE", "RPN_LOG_LEVEL", "RPN_SHOW_HELP")

@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    # Keep the developer's shell and any .env file out of the tests.
    for var in RPN_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(rpn_repl, "load_dotenv", lambda *args, **kwargs: False)

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when == "call":
        print(f"TEST: {item.name} - {'PASSED' if report.passed else 'FAILED'}")
