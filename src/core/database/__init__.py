"""Cassandra access for newsdesk.

``async_cassandra`` owns the cluster connection and creates the keyspace and
every resource's tables at startup.
"""
