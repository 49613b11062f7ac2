"""Shared test fixtures for tagguard."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tagguard.config import load_config

if TYPE_CHECKING:
    from pathlib import Path

    from tagguard.core.engine import ValidatedRuleSet

SAMPLE_CONFIG = """\
version: 1
roles: [admin, licensing]
tags:
  - name: scp
    excludes: [tale]
    implies: [primary-content]
  - name: tale
    implies: [primary-content]
  - hub
  - primary-content
  - name: euclid
    requires: scp
  - name: keter
    requires: [scp]
    excludes: [euclid]
  - name: _image
    excludes: [_cc]
  - name: _cc
    roles: [licensing]
  - name: admin
    roles: [admin]
groups:
  - name: primary
    tags: [scp, tale, hub]
    min: 1
    max: 1
  - name: object-class
    tags: [euclid, keter]
    max: 1
"""


@pytest.fixture()
def sample_config_path(tmp_path: Path) -> Path:
    """Write the sample configuration to a temporary file."""
    path = tmp_path / "tags.yml"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


@pytest.fixture()
def sample_ruleset(sample_config_path: Path) -> ValidatedRuleSet:
    """Build the sample configuration."""
    return load_config(sample_config_path).build()
