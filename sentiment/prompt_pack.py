# SPDX-License-Identifier: AGPL-3.0-only

"""
Prompt pack for brand and post sentiment analysis.
"""
from typing import Any, Dict, List, Optional


POST_CONTENT_PREVIEW_LENGTH = 500

LOCALE_PROMPTS = {
    "en": {
        "language": "English",
        "task": "Analyze the public sentiment about the brand",
        "search": "Use web search to find recent reviews, news articles, social posts and forum discussions.",
        "urls": "Every url must be a real page you found with web search. Never invent or use example URLs; omit the url field instead.",
        "arithmetic": "positive_percentage + negative_percentage + neutral_percentage must equal 100, and overall_score must equal positive_percentage + neutral_percentage / 2.",
        "post_task": "Analyze post sentiment and comments",
        "post_content": "Post Content",
        "platform": "Platform",
        "engagement": "Engagement: {likes} likes, {comments} comments, {shares} shares",
        "comments_header": "Real comments from platform (analyze each comment separately):",
        "by": "by",
        "post_rules": "If real comments exist, use them in sample_comments with your analyzed sentiment. Recommendations must be specific and based on the real comments.",
    },
    "he": {
        "language": "Hebrew",
        "task": "נתח את הסנטימנט הציבורי כלפי המותג",
        "search": "השתמש בחיפוש ברשת כדי למצוא ביקורות, כתבות, פוסטים ודיונים עדכניים.",
        "urls": "כל url חייב להיות עמוד אמיתי שנמצא בחיפוש. אל תמציא כתובות ואל תשתמש בכתובות לדוגמה; במקום זאת השמט את השדה url.",
        "arithmetic": "positive_percentage + negative_percentage + neutral_percentage חייבים להסתכם ל-100, ו-overall_score שווה ל-positive_percentage + neutral_percentage / 2.",
        "post_task": "נתח סנטימנט פוסט ותגובות",
        "post_content": "תוכן הפוסט",
        "platform": "פלטפורמה",
        "engagement": "מעורבות: {likes} לייקים, {comments} תגובות, {shares} שיתופים",
        "comments_header": "תגובות אמיתיות מהפלטפורמה (ניתוח כל תגובה בנפרד):",
        "by": "מאת",
        "post_rules": "אם יש תגובות אמיתיות, השתמש בהן ב-sample_comments עם הסנטימנט המנותח שלך. ההמלצות צריכות להיות ספציפיות ומבוססות על התגובות האמיתיות.",
    },
}


def get_locale_prompt(locale: Optional[str]) -> Dict[str, str]:
    return LOCALE_PROMPTS.get((locale or "").split("-")[0].lower(), LOCALE_PROMPTS["en"])


def build_system_prompt(locale: Optional[str], subject: str = "brand") -> str:
    language = get_locale_prompt(locale)["language"]
    return f"You are a {subject} sentiment analysis expert. Return JSON only. Language: {language}."


def build_sentiment_prompt(keywords: str, brand_name: Optional[str] = None, locale: Optional[str] = None) -> str:
    """
    Build the brand sentiment prompt.

    Args:
        keywords: Search keywords for the brand
        brand_name: Display name of the brand, when known
        locale: "he" or "en"
    """
    pack = get_locale_prompt(locale)
    subject = brand_name or keywords

    prompt = f"""{pack['task']}: "{subject}"
Keywords: {keywords}

{pack['search']}
{pack['urls']}
{pack['arithmetic']}

Respond in JSON format:
{{
  "overall_score": 0-100,
  "positive_percentage": 0-100,
  "negative_percentage": 0-100,
  "neutral_percentage": 0-100,
  "positive_themes": ["theme1", "theme2"],
  "negative_themes": ["theme1", "theme2"],
  "report": {{
    "positive_feedback": {{"items": [{{"title": "...", "description": "...", "url": "https://..."}}]}},
    "critical_feedback": {{"items": [{{"title": "...", "description": "...", "url": "https://..."}}]}},
    "summary": {{"positive": "...", "negative": "..."}},
    "positioning": "...",
    "sentiment_snapshot": [{{"source": "...", "sentiment_summary": "...", "url": "https://..."}}],
    "key_takeaways": ["...", "..."]
  }}
}}
"""
    return prompt


def format_comments(comments: List[Dict[str, Any]], locale: Optional[str] = None) -> str:
    """Numbered ``"text" by @author`` lines under a header; empty without comments."""
    if not comments:
        return ""
    pack = get_locale_prompt(locale)
    lines = [
        f'{i}. "{c.get("text", "")}" {pack["by"]} @{c.get("author") or "Unknown"}'
        for i, c in enumerate(comments, 1)
    ]
    return "\n" + pack["comments_header"] + "\n" + "\n".join(lines)


def build_post_sentiment_prompt(
    post_content: str,
    platform: Optional[str] = None,
    engagement: Optional[Dict[str, int]] = None,
    comments: Optional[List[Dict[str, Any]]] = None,
    locale: Optional[str] = None,
) -> str:
    """
    Build the post sentiment prompt.

    Args:
        post_content: Post text (truncated to the preview length)
        platform: Platform the post was published on
        engagement: ``{likes, comments, shares}`` counters
        comments: Real ``{text, author}`` comments fetched from the platform
        locale: "he" or "en"
    """
    pack = get_locale_prompt(locale)
    header = [f'{pack["post_content"]}: "{post_content[:POST_CONTENT_PREVIEW_LENGTH]}"']
    if platform:
        header.append(f'{pack["platform"]}: {platform}')
    if engagement:
        header.append(pack["engagement"].format(
            likes=engagement.get("likes") or 0,
            comments=engagement.get("comments") or 0,
            shares=engagement.get("shares") or 0,
        ))

    details = "\n".join(header) + format_comments(comments or [], locale)

    prompt = f"""{pack['post_task']}:

{details}

{pack['post_rules']}

Respond in JSON format:
{{
  "overall_sentiment": "positive|negative|neutral|mixed",
  "sentiment_distribution": {{"positive": 0-100, "negative": 0-100, "neutral": 0-100, "mixed": 0-100}},
  "main_themes": ["theme1", "theme2"],
  "common_emotions": ["emotion1", "emotion2"],
  "recommendations": ["...", "..."],
  "sample_comments": [{{"text": "...", "sentiment": "positive|negative|neutral", "author": "..."}}],
  "engagement_score": 0-100
}}
"""
    return prompt
