def get_topic_prompt_columns():
    """
    Topic/prompt configuration columns shared by onboarding upload and
    settings import/export.
    Returned as dictionaries to avoid circular imports.
    """
    return [
        {
            "name": "topic",
            "aliases": ["topic"],
            "default": None,
            "description": "Topic the prompt is grouped under",
        },
        {
            "name": "prompt",
            "aliases": ["prompt", "query", "query_text"],
            "default": None,
            "description": "Prompt text sent to the answer engines",
        },
        {
            "name": "country",
            "aliases": ["country", "country_code"],
            "default": "US",
            "description": "ISO country code the prompt is collected for",
        },
        {
            "name": "locale",
            "aliases": ["locale"],
            "default": "en-US",
            "description": "Locale the prompt is collected in",
        },
    ]


def get_template_sample_rows():
    """
    Sample rows offered in the downloadable onboarding template.
    """
    return [
        {
            "topic": "Product Features",
            "prompt": "What are the main features of your product?",
            "country": "US",
            "locale": "en-US",
        },
        {
            "topic": "Pricing",
            "prompt": "How much does your product cost?",
            "country": "US",
            "locale": "en-US",
        },
        {
            "topic": "Competitor Comparison",
            "prompt": "How does your product compare to competitors?",
            "country": "US",
            "locale": "en-US",
        },
    ]


TEMPLATE_FILENAME = "topic_prompts_template.csv"
