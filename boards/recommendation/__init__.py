"""Recommendation scoring: embeddings, taste vectors, time buckets and ranking."""
