"""Global test fixtures: singleton reset between tests and DIP text builders."""
import logging

import pytest


SAMPLE_DIP = """# Named Arguments

| Field           | Value                                                           |
|-----------------|-----------------------------------------------------------------|
| DIP:            | 1030                                                            |
| Review Count:   | 2 [Most Recent]                                                 |
| Author:         | Jacob Carlborg<br>Walter Bright walter@digitalmars.com          |
| Implementation: |                                                                 |
| Status:         | Community Review Round 2                                        |

## Abstract

Named arguments allow a function argument to be matched to a parameter
by name instead of by position.

## Contents
* [Rationale](#rationale)
* [Prior Work](#prior-work)

## Rationale

Calls with many boolean parameters are hard to read:

```d
# this line is inside a code block and is not a heading
void draw(int x, int y, bool filled, bool shadow);
```

### Prior Work

Several languages already support this.

## Reviews

### Community Review Round 1

Feedback was mostly about overload resolution.
"""


def build_dip_text(
    dip_id=1030,
    title="Named Arguments",
    review_count=0,
    status="Draft",
    author="Walter Bright walter@digitalmars.com",
    implementation="",
    body="## Abstract\n\nA short abstract.\n",
):
    """Build DIP markdown. The metadata rows are on lines 5-9."""
    return (
        f"# {title}\n"
        "\n"
        "| Field           | Value |\n"
        "|-----------------|-------|\n"
        f"| DIP:            | {dip_id} |\n"
        f"| Review Count:   | {review_count} |\n"
        f"| Author:         | {author} |\n"
        f"| Implementation: | {implementation} |\n"
        f"| Status:         | {status} |\n"
        "\n"
        f"{body}"
    )


@pytest.fixture
def make_dip():
    """Factory for DIP markdown text."""
    return build_dip_text


@pytest.fixture
def sample_dip():
    return SAMPLE_DIP


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level singletons before and after each test."""
    _do_reset()
    yield
    _do_reset()


def _do_reset():
    import shared.config as config_mod
    config_mod._instance = None


@pytest.fixture(autouse=True)
def reset_package_loggers():
    """Detach handlers installed by setup_logging during a test."""
    yield
    from shared.logging_config import PACKAGE_LOGGERS
    for name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(name)
        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)
            handler.close()
