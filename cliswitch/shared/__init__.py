"""Platform primitives shared by backends and delegating services."""
