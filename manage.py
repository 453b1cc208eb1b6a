"""
Maintenance Commands
Rebuild materialized leaderboards and grant or revoke admin claims

    python manage.py regenerate-leaderboards [MODULE ...]
    python manage.py set-admin USERNAME [--revoke]
"""
import argparse
import sys

from studyhall import create_app
from studyhall.errors import StudyHallError
from studyhall.services import AdminService, LeaderboardService


def regenerate_leaderboards(app, module_ids=None):
    """Rebuild every board from all stored attempts"""
    module_ids = module_ids or app.config['LEADERBOARD_MODULES']
    with app.app_context():
        print(f"\n{'=' * 50}")
        print('REGENERATING LEADERBOARDS')
        print(f"{'=' * 50}")
        counts = LeaderboardService.regenerate(module_ids)
        for module_id, count in counts.items():
            print(f'  {module_id}: {count} entries')
        AdminService.log_action('system', f"regenerateLeaderboards: {','.join(module_ids)}")
    return counts


def set_admin(app, username, is_admin=True):
    with app.app_context():
        profile = AdminService.set_admin_claim(username, is_admin, actor='system')
        state = 'granted' if profile.is_admin else 'revoked'
        print(f'Admin claim {state} for {profile.username}')
    return profile


def build_parser():
    parser = argparse.ArgumentParser(prog='manage.py', description='StudyHall maintenance')
    parser.add_argument('--config', default=None, help='config name (development, production, testing)')
    commands = parser.add_subparsers(dest='command', required=True)

    regen = commands.add_parser('regenerate-leaderboards', help='rebuild materialized leaderboards')
    regen.add_argument('modules', nargs='*', help='module ids (default: all configured)')

    admin = commands.add_parser('set-admin', help='grant the admin claim to a user')
    admin.add_argument('username')
    admin.add_argument('--revoke', action='store_true', help='remove the claim instead')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    app = create_app(args.config)

    try:
        if args.command == 'regenerate-leaderboards':
            regenerate_leaderboards(app, args.modules)
        elif args.command == 'set-admin':
            set_admin(app, args.username, not args.revoke)
    except StudyHallError as err:
        print(f'Error: {err.message}', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
