"""Tests for CommandConfig and its builder."""

from switchwire.middleware.command_config import (
    CommandConfig,
    CommandConfigBuilder,
    PermissionRequirement,
    admin_config,
    cooldown_minutes,
    mod_config,
    require_any_permission,
    utility_config,
)


class TestCommandConfigBuilder:

    def test_empty_config(self):
        config = CommandConfigBuilder.create().build()
        assert config == CommandConfig()
        assert config.needs_permission_check is False

    def test_chained_settings(self):
        config = (
            CommandConfigBuilder.create()
            .guild_only()
            .permissions("ban_members", "kick_members")
            .role("vip")
            .cooldown_ms(1500)
            .custom("category", "moderation")
            .build()
        )
        assert config.guild_only is True
        assert config.permissions == PermissionRequirement(("ban_members", "kick_members"))
        assert config.role == "vip"
        assert config.cooldown == 1.5
        assert config.custom == {"category": "moderation"}
        assert config.needs_permission_check is True

    def test_builder_does_not_mutate_built_configs(self):
        builder = CommandConfigBuilder.create().custom("a", 1)
        first = builder.build()
        second = builder.custom("b", 2).build()
        assert first.custom == {"a": 1}
        assert second.custom == {"a": 1, "b": 2}


class TestPresets:

    def test_mod_config(self):
        config = mod_config()
        assert config.guild_only and config.mod_role
        assert config.cooldown == 5

    def test_admin_config(self):
        config = admin_config(cooldown=30)
        assert config.permissions.required == ("administrator",)
        assert config.cooldown == 30

    def test_utility_config(self):
        config = utility_config()
        assert config.guild_only
        assert config.needs_permission_check is False

    def test_any_permission(self):
        assert require_any_permission("a", "b").permissions.require_any is True

    def test_cooldown_minutes(self):
        assert cooldown_minutes(2).cooldown == 120
