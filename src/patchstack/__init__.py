"""patchstack - a stack of named patches layered on git history."""
