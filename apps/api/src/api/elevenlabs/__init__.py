"""ElevenLabs voice agent webhooks."""
