# govdl

Building blocks for working with media found on the web.

- **Media models** (`govdl.media`): `Media`, `MediaFormat`, `MediaType`,
  `MediaCodec`, `DownloadedMedia`, `Extractor` and `ExtractorResponse`.
  A `Media` picks its default video format (AVC preferred, then highest
  bitrate and height), default audio-only format (AAC or MP3 preferred,
  highest bitrate) or first photo format, de-duplicates and sorts its
  formats with `get_sorted_formats`, and can describe an audio track taken
  from its video with `get_audio_from_video_format`. A `MediaFormat` gives
  a file extension and message kind with `get_format_info` and a file name
  with `get_file_name` (`"Artist - Title.ext"` for tagged audio, a random
  hex name otherwise).
- **Settings** (`govdl.config`): `DownloadConfig` defaults to 10 MB chunks,
  4 workers, a 30 s timeout, 3 retries 2 s apart and a 50 MB in-memory
  limit; its download directory comes from the `DOWNLOADS_DIR` environment
  variable and falls back to `downloads`. `ensure()` and
  `get_download_config()` fill in defaults for missing or non-positive
  values. `ExtractorConfig` holds per-extractor proxy settings, and
  `EdgeProxyResponse` the JSON body an edge proxy answers with.
- **HLS parsing** (`govdl.m3u8`): `parse_m3u8_content` and
  `parse_m3u8_from_url` turn master and media playlists into
  `MediaFormat` lists. Variant and audio playlists named by a master
  playlist are fetched to collect their segments. `get_resolution`,
  `get_video_codec`, `get_audio_codec` and `resolve_url` are available on
  their own.
- **Networking** (`govdl.networking`): `HTTPClient` wraps a `requests`
  session; `get_default_http_client()` returns a shared one,
  `new_chrome_client()` one with a browser-like TLS setup, and
  `new_client_from_config()` one that routes through the HTTP/HTTPS
  proxies of an `ExtractorConfig`, honouring its comma-separated
  `no_proxy` list (exact hosts or `.suffix` entries). `EdgeProxyClient`
  sends a request to `<proxy>?url=<target>` and rebuilds the target's
  response from the proxy's JSON answer.
- **JSON lookup** (`govdl.traverse`): `traverse_json` finds a key, or a
  path of keys, at any depth in decoded JSON.

## Installation

```
pip install govdl
```

## Example

```python
from govdl.m3u8 import parse_m3u8_content
from govdl.media import Media

playlist = """#EXTM3U
#EXT-X-TARGETDURATION:4
#EXTINF:4.0,
seg1.ts
#EXTINF:4.0,
seg2.ts
#EXT-X-ENDLIST
"""

media = Media(content_id="abc", content_url="https://example.com/v/abc",
              extractor_code_name="example")
for fmt in parse_m3u8_content(playlist, "https://example.com/hls/index.m3u8"):
    media.add_format(fmt)

fmt = media.get_format("hls")
print(fmt.duration)   # 8
print(fmt.segments)   # ['https://example.com/hls/seg1.ts', 'https://example.com/hls/seg2.ts']
```

Sending a request through an HTTP client:

```python
import requests
from govdl.config import ExtractorConfig
from govdl.networking import new_client_from_config

client = new_client_from_config(
    ExtractorConfig(https_proxy="http://localhost:8080", no_proxy=".example.com")
)
response = client.do(requests.Request("GET", "https://example.org/"))
```

Looking up a key anywhere in decoded JSON:

```python
from govdl.traverse import traverse_json

traverse_json({"data": {"items": [{"id": 7}]}}, ["items"])  # [{'id': 7}]
```

## What it does not do

The package describes media and its formats, parses playlists and sends
HTTP requests, but it does not save media to disk: there is no chunked
or segment downloader, no image conversion, no remuxing or merging of
streams, and no command-line program. `DownloadConfig` and `Plugin` only
describe settings and hooks for code that does such work.

## Running the tests

```
pip install -e ".[test]"
pytest
```