"""Children's storybook generator backend."""
