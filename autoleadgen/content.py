"""Post content: scrape a post or article and write new posts and replies with AI.

Scraping goes through the same page driver as the other pipelines; generation
goes through ``AIProviderRouter.complete`` so provider selection and key
lookup behave exactly as for outreach messages.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

from autoleadgen import page_scripts
from autoleadgen.ai_router import AIProviderRouter
from autoleadgen.errors import ContentParseError, InvalidPageURLError
from autoleadgen.page_driver import PageDriver, evaluate_record, navigate
from autoleadgen.polling import PollPolicy
from autoleadgen.prompts import reply_prompt, rewrite_prompt, topic_post_prompt
from schemas.content import GenerationType, PostPlatform, ViralPost

logger = logging.getLogger(__name__)

POST_MAX_TOKENS = 1500
POST_TEMPERATURE = 0.8

_SCRIPTS = {
    PostPlatform.LINKEDIN: page_scripts.LINKEDIN_POST,
    PostPlatform.TWITTER: page_scripts.TWITTER_POST,
}


def _check_url(url: str) -> str:
    s = (url or "").strip()
    parsed = urlparse(s)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidPageURLError(s)
    return s


async def read_loaded_post(driver: PageDriver, url: str,
                           platform: Optional[PostPlatform] = None) -> ViralPost:
    """Extract the post on the page the driver already shows."""
    platform = platform or PostPlatform.detect(url)
    script = _SCRIPTS.get(platform, page_scripts.WEBSITE_CONTENT)
    record = await evaluate_record(driver, script)
    if record is None:
        raise ContentParseError()
    if platform not in _SCRIPTS:
        platform = PostPlatform.WEBSITE
    return ViralPost.from_record(record, url, platform)


async def scrape_content(driver: PageDriver, url: str, policy: PollPolicy = PollPolicy(settle_s=2.0)) -> ViralPost:
    """Load ``url`` and extract its post: LinkedIn, X/Twitter, or any article page.

    Raises ``InvalidPageURLError`` for non-http(s) input, ``AutomationTimeout``
    when the page never finishes loading and ``ContentParseError`` when the
    page yields nothing readable.
    """
    url = _check_url(url)
    await navigate(driver, url, policy)
    post = await read_loaded_post(driver, url)
    logger.info("content: scraped %s post from %s (%d chars)",
                post.platform.value, url, len(post.original_content))
    return post


class ContentWriter:
    def __init__(self, router: AIProviderRouter, model_id: Optional[str],
                 voice_style: Optional[str] = None):
        self.router = router
        self.model_id = model_id
        self.voice_style = voice_style

    async def _complete(self, prompt: str) -> str:
        text = await self.router.complete(self.model_id, prompt,
                                          max_tokens=POST_MAX_TOKENS, temperature=POST_TEMPERATURE)
        return text.strip()

    async def from_topic(self, topic: str) -> ViralPost:
        text = await self._complete(topic_post_prompt(topic, self.voice_style))
        return ViralPost(
            platform=PostPlatform.TOPIC,
            topic=topic.strip(),
            generated_content=text,
            generation_type=GenerationType.ORIGINAL,
            user_voice_style=self.voice_style,
        )

    async def rewrite(self, post: ViralPost, angle: Optional[str] = None) -> ViralPost:
        """Rewrite ``post`` in the writer's voice; the result is stored on the post."""
        if not post.original_content.strip():
            raise ContentParseError("The post has no content to rewrite")
        post.generated_content = await self._complete(
            rewrite_prompt(post.original_content, self.voice_style, angle))
        post.generation_type = GenerationType.REWRITE
        post.user_voice_style = self.voice_style
        if angle and angle.strip():
            post.topic = angle.strip()
        return post

    async def reply(self, post_content: str) -> str:
        return await self._complete(reply_prompt(post_content, self.voice_style))
