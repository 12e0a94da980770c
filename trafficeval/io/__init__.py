"""Readers and writers for flow snapshots, workspaces and workbooks."""
