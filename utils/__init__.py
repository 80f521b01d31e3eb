# Utility modules for the meal planner
from .sanitizer import sanitize_text, sanitize_optional, sanitize_url, is_video_url
