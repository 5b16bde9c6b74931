"""TikTok extraction providers, auto-discovered by TikTokService."""
