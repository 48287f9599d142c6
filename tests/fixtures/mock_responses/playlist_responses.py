"""
Mock M3U playlists and HLS manifests for testing.
"""

M3U_SINGLE_CHANNEL = (
    "#EXTM3U\n"
    '#EXTINF:-1 tvg-id="ch1" group-title="Sport",Channel One\n'
    "http://x/1.m3u8\n"
)

M3U_THREE_CHANNELS = """#EXTM3U
#EXTINF:-1 tvg-id="news1" tvg-name="News One" tvg-logo="http://logo/news.png" group-title="News" tvg-chno="101",News One
http://src.example/news/index.m3u8
#EXTINF:-1 tvg-id="sport1" group-title="Sport",Sport One
rtmp://src.example/live/sport
#EXTINF:-1 group-title="Movies",Movie Channel
http://src.example/movies/manifest.mpd
"""

M3U_A1_CHANNEL = """#EXTM3U
#EXTINF:-1 group-title="A1",A1 Sport
http://cdn.a1.example/__c/A1_sport/dash-default/manifest.mpd
"""

HLS_MEDIA_PLAYLIST = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:6
#EXT-X-KEY:METHOD=AES-128,URI="http://src/live/key.bin"
#EXTINF:6.0,
http://src/live/seg1.ts
#EXTINF:6.0,
seg2.ts
#EXTINF:6.0,
http://elsewhere/seg3.ts
"""

HTML_REDIRECT_PAGE = """<html><head><title>Moved</title></head>
<body><a href="http://cdn.example/live/stream.m3u8?token=abc">Click here</a></body></html>
"""
