"""
Dubbing Studio - speaker-tagged transcripts for dubbing projects.

A toolkit around the ElevenLabs dubbing API and OpenAI Whisper for:
- Parsing SRT transcripts into timed segments
- Attributing segments to speakers (explicit markers or timing heuristics)
- Creating, polling and deleting dubbing projects
- Pairing original and translated transcripts for editing
"""

__version__ = "0.1.0"
