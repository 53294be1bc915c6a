"""
Shared fixtures for the EMWUI client tests.

FakeEMWUI stands in for an EpgTimer server: it serves canned XML/HTML bodies
per path through httpx.MockTransport and records every request it receives.
"""
from __future__ import annotations

from typing import Callable

import httpx
import pytest

from epgtimer import commands
from epgtimer.services.emwui_client import EMWUIClient


BASE_URL = "http://emwui.test:5510"

TOKEN_HTML = """<!DOCTYPE html>
<html>
<head><title>EpgTimer</title></head>
<body>
<form method="POST" action="/api/SetAutoAdd">
  <input type="text" name="andKey" value="">
  <input type="hidden" name="ctok" value="abc123token">
</form>
</body>
</html>
"""

RULES_XML = """<?xml version="1.0" encoding="UTF-8"?>
<entry>
  <total>3</total>
  <index>0</index>
  <count>3</count>
  <items>
    <autoaddinfo>
      <ID>1</ID>
      <searchsetting>
        <disableFlag>0</disableFlag>
        <caseFlag>0</caseFlag>
        <andKey>サイエンスZERO</andKey>
        <notKey>再放送</notKey>
        <regExpFlag>0</regExpFlag>
        <titleOnlyFlag>1</titleOnlyFlag>
        <serviceList><onid>32736</onid><tsid>32736</tsid><sid>1024</sid></serviceList>
        <chkRecDay>6</chkRecDay>
      </searchsetting>
      <recsetting>
        <recMode>1</recMode>
        <priority>2</priority>
        <tuijyuuFlag>1</tuijyuuFlag>
      </recsetting>
    </autoaddinfo>
    <autoaddinfo>
      <ID>2</ID>
      <searchsetting>
        <disableFlag>0</disableFlag>
        <andKey>ブラタモリ</andKey>
        <notKey></notKey>
        <regExpFlag>0</regExpFlag>
        <serviceList><onid>32736</onid><tsid>32736</tsid><sid>1024</sid></serviceList>
        <serviceList><onid>32737</onid><tsid>32737</tsid><sid>1032</sid></serviceList>
      </searchsetting>
      <recsetting>
        <recMode>1</recMode>
        <priority>3</priority>
      </recsetting>
    </autoaddinfo>
    <autoaddinfo>
      <ID>3</ID>
      <searchsetting>
        <disableFlag>1</disableFlag>
        <andKey>ニュース.*特集</andKey>
        <regExpFlag>1</regExpFlag>
        <serviceList><onid>32737</onid><tsid>32737</tsid><sid>1032</sid></serviceList>
      </searchsetting>
      <recsetting>
        <recMode>2</recMode>
        <priority>1</priority>
      </recsetting>
    </autoaddinfo>
  </items>
</entry>
"""

CHANNELS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<entry>
  <total>3</total>
  <index>0</index>
  <count>3</count>
  <items>
    <serviceinfo>
      <ONID>32736</ONID><TSID>32736</TSID><SID>1024</SID>
      <service_type>1</service_type>
      <partialReceptionFlag>0</partialReceptionFlag>
      <service_provider_name>NHK</service_provider_name>
      <service_name>NHK総合1・東京</service_name>
      <network_name>地上デジタル</network_name>
      <ts_name>NHK総合</ts_name>
      <remote_control_key_id>1</remote_control_key_id>
    </serviceinfo>
    <serviceinfo>
      <ONID>32737</ONID><TSID>32737</TSID><SID>1088</SID>
      <service_type>2</service_type>
      <service_name>NHK-FM</service_name>
      <network_name>地上デジタル</network_name>
      <remote_control_key_id>0</remote_control_key_id>
    </serviceinfo>
    <serviceinfo>
      <ONID>4</ONID><TSID>16625</TSID><SID>700</SID>
      <service_type>192</service_type>
      <service_name>BSデータ</service_name>
      <network_name>BS Digital</network_name>
    </serviceinfo>
  </items>
</entry>
"""

EVENTS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<entry>
  <total>2</total>
  <index>0</index>
  <count>2</count>
  <items>
    <eventinfo>
      <ONID>32736</ONID><TSID>32736</TSID><SID>1024</SID>
      <eventID>101</eventID>
      <service_name>NHK総合1・東京</service_name>
      <startDate>2025/12/22</startDate>
      <startTime>19:00:00</startTime>
      <startDayOfWeek>1</startDayOfWeek>
      <duration>1800</duration>
      <event_name>ニュース7</event_name>
      <event_text>今日のニュース</event_text>
      <freeCAFlag>0</freeCAFlag>
      <contentInfo>
        <nibble1>0</nibble1>
        <nibble2>0</nibble2>
        <component_type_name>ニュース／報道</component_type_name>
      </contentInfo>
    </eventinfo>
    <eventinfo>
      <ONID>32736</ONID><TSID>32736</TSID><SID>1024</SID>
      <eventID>102</eventID>
      <service_name>NHK総合1・東京</service_name>
      <startDate>2025/12/22</startDate>
      <startTime>22:30:00</startTime>
      <startDayOfWeek>1</startDayOfWeek>
      <duration>1845</duration>
      <event_name>サイエンスZERO</event_name>
      <event_text>科学番組</event_text>
      <freeCAFlag>1</freeCAFlag>
      <contentInfo>
        <nibble1>8</nibble1>
        <nibble2>0</nibble2>
        <component_type_name>ドキュメンタリー／教養</component_type_name>
      </contentInfo>
    </eventinfo>
  </items>
</entry>
"""

RECORDINGS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<entry>
  <total>2</total>
  <index>0</index>
  <count>2</count>
  <items>
    <recinfo>
      <ID>10</ID>
      <title>ブラタモリ「京都」</title>
      <startDate>2025/12/20</startDate>
      <startTime>19:30:00</startTime>
      <durationSecond>2700</durationSecond>
      <stationName>NHK総合1・東京</stationName>
      <ONID>32736</ONID><TSID>32736</TSID><SID>1024</SID>
      <eventID>555</eventID>
      <comment>EPG自動予約</comment>
      <recFilePath>D:\\rec\\buratamori.ts</recFilePath>
      <protectFlag>1</protectFlag>
    </recinfo>
    <recinfo>
      <ID>11</ID>
      <title>サイエンスZERO</title>
      <startDate>2025/12/21</startDate>
      <startTime>23:30:00</startTime>
      <durationSecond>1800</durationSecond>
      <stationName>NHKEテレ1・東京</stationName>
      <ONID>32737</ONID><TSID>32737</TSID><SID>1032</SID>
      <eventID>556</eventID>
      <protectFlag>0</protectFlag>
    </recinfo>
  </items>
</entry>
"""

RESERVATIONS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<entry>
  <total>2</total>
  <index>0</index>
  <count>2</count>
  <items>
    <reserveinfo>
      <ID>20</ID>
      <title>ブラタモリ「奈良」</title>
      <startDate>2025/12/27</startDate>
      <startTime>19:30:00</startTime>
      <durationSecond>2700</durationSecond>
      <stationName>NHK総合1・東京</stationName>
      <ONID>32736</ONID><TSID>32736</TSID><SID>1024</SID>
      <eventID>600</eventID>
      <comment>EPG自動予約</comment>
      <recsetting>
        <recMode>1</recMode>
        <priority>2</priority>
        <tuijyuuFlag>1</tuijyuuFlag>
        <useMargineFlag>1</useMargineFlag>
        <startMargine>-30</startMargine>
        <endMargine>60</endMargine>
        <tunerID>0</tunerID>
      </recsetting>
    </reserveinfo>
    <reserveinfo>
      <ID>21</ID>
      <title>サイエンスZERO</title>
      <startDate>2025/12/28</startDate>
      <startTime>23:30:00</startTime>
      <durationSecond>1800</durationSecond>
      <stationName>NHKEテレ1・東京</stationName>
      <ONID>32737</ONID><TSID>32737</TSID><SID>1032</SID>
      <eventID>601</eventID>
    </reserveinfo>
  </items>
</entry>
"""

SUCCESS_XML = """<?xml version="1.0" encoding="UTF-8"?><entry><success>EPG自動予約を追加しました</success></entry>"""

ERR_XML = """<?xml version="1.0" encoding="UTF-8"?><entry><err>不正なパラメータです</err></entry>"""

Body = str | bytes | Exception | Callable[[httpx.Request], httpx.Response]


class FakeEMWUI:
    """In-memory EMWUI server keyed by request path"""

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, Body]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, body: Body, status_code: int = 200) -> None:
        self.routes[path] = (status_code, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="404 Not Found")

        status_code, body = route
        if isinstance(body, Exception):
            raise body
        if callable(body):
            return body(request)
        content = body.encode("utf-8") if isinstance(body, str) else body
        return httpx.Response(status_code, content=content)

    def client(self) -> EMWUIClient:
        return EMWUIClient(BASE_URL, transport=httpx.MockTransport(self.handler))

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def fake_emwui() -> FakeEMWUI:
    return FakeEMWUI()


@pytest.fixture
def client(fake_emwui):
    with fake_emwui.client() as emwui_client:
        yield emwui_client


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Run in an empty directory with no EMWUI_* variables set"""
    monkeypatch.chdir(tmp_path)
    for name in ("EMWUI_ENDPOINT", "EMWUI_REQUEST_TIMEOUT_SEC", "EMWUI_CHANNEL_LIST_FILE", "EMWUI_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def cli_backend(monkeypatch, isolated_env, fake_emwui):
    """Point the command layer at FakeEMWUI"""
    monkeypatch.setenv("EMWUI_ENDPOINT", BASE_URL)
    monkeypatch.setattr(commands, "build_client", lambda settings: fake_emwui.client())
    return fake_emwui
