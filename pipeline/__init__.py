"""Fastly client, batch submitter and upload orchestration."""
