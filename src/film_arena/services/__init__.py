"""Arena services: matchmaking, vote recording, ranking and storage."""
