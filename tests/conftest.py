# -*- coding: utf-8 -*-

"""Pytest configuration.

This project is a simple app folder layout (not installed as a package).
For local testing we add the repository root to sys.path so that imports like
`from core...` work reliably.

Shared fixtures build small interchange documents on disk.
"""

from __future__ import annotations

import os
import sys

import pytest


ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


GUID_A = "3f2504e0-4f89-11d3-9a0c-0305e82c3301"

SAMPLE_PROPERTIES = 'a:2:{s:12:"DX.SPEC_Name";s:4:"Pipe";s:12:"DX.SPEC_Size";s:5:"DN125";}'

SAMPLE_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<cefexport version="2">
  <costelements>
    <costelement id="1">
      <type>Pipe</type>
      <name>Steel pipe</name>
      <description>Carbon steel</description>
      <properties><![CDATA[{SAMPLE_PROPERTIES}]]></properties>
      <filter/>
      <children/>
      <openings/>
      <created>2024-01-02T03:04:05</created>
      <cecatalogassigns>
        <cecatalogassign>
          <catalogname>Main</catalogname>
          <catalogtype>Valves</catalogtype>
          <name>Gate valve</name>
          <number>V100</number>
          <reference>R-1</reference>
        </cecatalogassign>
      </cecatalogassigns>
      <cecalculations>
        <cecalculation>
          <id>{GUID_A}</id>
          <parent>0</parent>
          <order>1</order>
          <ident>P-001</ident>
          <text><![CDATA[Pipe DN125]]></text>
          <longtext><![CDATA[Steel pipe]]></longtext>
          <qty>10</qty>
          <qty_result>10</qty_result>
          <qu>m</qu>
          <up>2.5</up>
          <up_result>25</up_result>
          <sum>25</sum>
          <marked>0</marked>
        </cecalculation>
      </cecalculations>
    </costelement>
  </costelements>
</cefexport>
"""


@pytest.fixture()
def sample_xml_path(tmp_path):
    p = tmp_path / "sample.xml"
    p.write_text(SAMPLE_XML, encoding="utf-8")
    return p


@pytest.fixture(autouse=True)
def _isolated_user_space(tmp_path, monkeypatch):
    """Settings and logs never touch the real per-user folder."""
    monkeypatch.setenv("NOVAAVA_HOME", str(tmp_path / "home"))
