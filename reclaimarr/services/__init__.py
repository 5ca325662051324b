"""HTTP clients for Jellyfin, Sonarr and Radarr."""
