"""
Validation Constants

Contains the limits and whitelists used to validate user input
before it reaches storage.
"""

import re

# Share permissions a plan owner can grant
VALID_PERMISSIONS = {'view', 'edit'}

# Basic email shape check (something@something.tld)
EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

# Hosts accepted for meal video links
VIDEO_HOSTS = {
    'youtube.com', 'www.youtube.com', 'm.youtube.com', 'youtu.be',
    'tiktok.com', 'www.tiktok.com', 'vm.tiktok.com',
}

# Share tokens are drawn from this alphabet
SHARE_TOKEN_ALPHABET = 'abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
SHARE_TOKEN_LENGTH = 12

# Maximum field lengths
MAX_LENGTHS = {
    'meal_name': 200,
    'ingredients': 10000,
    'instructions': 50000,
    'video_url': 500,
    'cuisine_type': 20,
    'plan_name': 50,
    'plan_subtitle': 100,
    'day_name': 100,
    'email': 255,
}
