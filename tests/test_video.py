# =============================================================================
# tests/test_video.py - Demo Video Embed URL Tests
# =============================================================================

import pytest

from marketplace.utils.video import video_embed_url


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/watch?v=abc123", "https://www.youtube.com/embed/abc123"),
        ("https://www.youtube.com/watch?v=abc123&t=42s", "https://www.youtube.com/embed/abc123"),
        ("https://youtu.be/abc123", "https://www.youtube.com/embed/abc123"),
        ("https://www.youtube.com/embed/abc123", "https://www.youtube.com/embed/abc123"),
        ("https://player.vimeo.com/video/1234", "https://player.vimeo.com/video/1234"),
    ],
)
def test_embed_url(url, expected):
    assert video_embed_url(url) == expected


def test_empty_url():
    assert video_embed_url(None) is None
    assert video_embed_url("") is None
