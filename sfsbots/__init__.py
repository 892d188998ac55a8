"""SmartFox load-generating bot swarm."""
