from urllib.parse import parse_qs, urlparse

YOUTUBE_EMBED = "https://www.youtube.com/embed/{}"


def video_embed_url(url: str | None) -> str | None:
    """
    Turn a YouTube watch/share link into its embed URL. Anything else is
    assumed to be embeddable already and is returned unchanged.
    """
    if not url:
        return None
    if "youtube.com" not in url and "youtu.be" not in url:
        return url

    parsed = urlparse(url)
    if "/embed/" in parsed.path:
        return url

    video_id = parse_qs(parsed.query).get("v", [None])[0]
    if not video_id:
        video_id = parsed.path.rstrip("/").rsplit("/", 1)[-1]
    if not video_id:
        return url
    return YOUTUBE_EMBED.format(video_id)
