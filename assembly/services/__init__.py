"""Engine services: the write paths and orchestration around the resolvers."""
