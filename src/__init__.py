"""avatarkit: profile image storage with a two-tier location cache."""
