"""
ISC DHCP Lease Inspector Flask Application
Provides a read-only REST API over the ISC DHCP Server lease database
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional
from flask import Flask, request, jsonify
from flask_cors import CORS
from config_manager import ConfigManager
from lease_date import Date
from lease_errors import LeaseFileError
from lease_parser import LeaseParser
from leases import LeasesField

# Query parameter values accepted by the active lease lookup
LOOKUP_FIELDS = {
    'ip': LeasesField.LEASED_IP,
    'mac': LeasesField.MAC,
    'hostname': LeasesField.HOSTNAME,
    'client_hostname': LeasesField.CLIENT_HOSTNAME,
}


def setup_logging(app):
    """Configure application logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO').upper()
    log_path = app.config.get('LOGGING_PATH', '/var/log/isc-dhcp-lease-inspector')

    numeric_level = getattr(logging, log_level, logging.INFO)

    if not os.path.exists(log_path):
        try:
            os.makedirs(log_path, exist_ok=True)
        except PermissionError:
            # Fall back to current directory if we can't create log directory
            log_path = '.'

    log_format = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # 10MB max, keep 5 backups
    log_file = os.path.join(log_path, 'lease-inspector.log')
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(log_format)

    # Console handler for systemd journal
    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(log_format)

    app.logger.setLevel(numeric_level)
    app.logger.addHandler(file_handler)
    app.logger.addHandler(console_handler)

    # Parser modules log through their own module loggers
    for name in ('werkzeug', 'lease_parser', 'lease_lexer'):
        module_logger = logging.getLogger(name)
        module_logger.setLevel(numeric_level)
        module_logger.addHandler(file_handler)
        module_logger.addHandler(console_handler)

    logging.getLogger().setLevel(numeric_level)


def create_app(config_path: Optional[str] = None):
    """Application factory"""
    app = Flask(__name__)

    config_manager = ConfigManager(config_path)
    config_dict = config_manager.with_defaults(config_manager.read_config())

    errors = config_manager.validate_config(config_dict)
    if errors:
        raise ValueError(f"Invalid configuration: {'; '.join(errors)}")

    for key, value in config_dict.items():
        app.config[key] = value

    app.config['DEBUG'] = app.config['FLASK_DEBUG'].lower() == 'true'
    app.config['PORT'] = int(app.config['PORT'])
    app.config['CORS_ORIGINS'] = app.config['CORS_ORIGINS'].split(',')

    CORS(app, origins=app.config['CORS_ORIGINS'])

    setup_logging(app)

    app.logger.debug(f"Worker process {os.getpid()} initialized")

    prefix = app.config['API_PREFIX']
    lease_parser = LeaseParser(app.config['DHCP_LEASES_PATH'])

    @app.after_request
    def add_security_headers(response):
        """Add security headers to all API responses"""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"

        # Lease data changes constantly, never cache it
        if request.path.startswith(prefix):
            response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, private'
            response.headers['Pragma'] = 'no-cache'
            response.headers['Expires'] = '0'

        return response

    @app.errorhandler(400)
    def bad_request(error):
        app.logger.warning(f"Bad request: {request.method} {request.path} - {str(error)}")
        return jsonify({'error': 'Bad request', 'message': str(error)}), 400

    @app.errorhandler(404)
    def not_found(error):
        app.logger.debug(f"Not found: {request.method} {request.path}")
        return jsonify({'error': 'Not found', 'message': str(error)}), 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal server error: {request.method} {request.path} - {str(error)}", exc_info=True)
        return jsonify({'error': 'Internal server error', 'message': str(error)}), 500

    def lease_file_error(e):
        """Map lease file failures to a JSON error response"""
        if isinstance(e, FileNotFoundError):
            app.logger.error(f"Leases file not found: {lease_parser.leases_path}")
            return jsonify({'error': 'Leases file not found'}), 404
        if isinstance(e, PermissionError):
            app.logger.error("Permission denied accessing leases file")
            return jsonify({'error': 'Permission denied accessing leases file'}), 403
        if isinstance(e, LeaseFileError):
            app.logger.warning(f"Leases file could not be parsed: {str(e)}")
            return jsonify({'error': 'Leases file could not be parsed', 'message': str(e)}), 422
        app.logger.error(f"Failed to read leases: {str(e)}")
        return jsonify({'error': 'Failed to read leases', 'message': str(e)}), 500

    @app.route('/')
    @app.route(f"{prefix}/")
    def index():
        """Health check endpoint"""
        app.logger.debug("Health check accessed")
        return jsonify({
            'status': 'running',
            'service': 'ISC DHCP Lease Inspector',
            'version': '1.0.0'
        })

    @app.route(f"{prefix}/leases", methods=['GET'])
    def get_leases():
        """Get all DHCP leases in file order, optionally filtered by one field"""
        try:
            leases = lease_parser.parse_leases()

            if request.args.get('ip'):
                selected = leases.by_leased_all(request.args['ip'])
            elif request.args.get('mac'):
                selected = leases.by_mac_all(request.args['mac'])
            elif request.args.get('hostname'):
                selected = leases.by_hostname_all(request.args['hostname'])
            elif request.args.get('client_hostname'):
                selected = leases.by_client_hostname_all(request.args['client_hostname'])
            else:
                selected = leases.all()

            app.logger.debug(f"Retrieved {len(selected)} leases")
            return jsonify([lease.to_dict() for lease in selected])

        except Exception as e:
            return lease_file_error(e)

    @app.route(f"{prefix}/leases/current", methods=['GET'])
    def get_current_leases():
        """Get the lease currently holding each IP address"""
        try:
            active_at = _active_at_param()
        except ValueError as e:
            return jsonify({'error': 'Invalid time', 'message': str(e)}), 400

        try:
            leases = lease_parser.get_active_leases(active_at)
            app.logger.debug(f"Retrieved {len(leases)} current leases")
            return jsonify([lease.to_dict() for lease in leases])
        except Exception as e:
            return lease_file_error(e)

    @app.route(f"{prefix}/leases/active", methods=['GET'])
    def get_active_lease():
        """Resolve the active lease for an ip, mac, hostname or client_hostname"""
        by = request.args.get('by', 'ip')
        value = request.args.get('value')

        if by not in LOOKUP_FIELDS:
            valid = ', '.join(LOOKUP_FIELDS)
            return jsonify({'error': 'Invalid lookup field', 'message': f"'by' must be one of: {valid}"}), 400
        if not value:
            return jsonify({'error': 'Missing value', 'message': "'value' query parameter is required"}), 400

        try:
            active_at = _active_at_param()
        except ValueError as e:
            return jsonify({'error': 'Invalid time', 'message': str(e)}), 400

        try:
            leases = lease_parser.parse_leases()
        except Exception as e:
            return lease_file_error(e)

        lease = leases.active_by(LOOKUP_FIELDS[by], value, active_at)
        if lease is None:
            app.logger.debug(f"No active lease for {by}={value} at {active_at}")
            return jsonify({'error': 'No active lease', 'message': f"No active lease for {by} {value}"}), 404

        return jsonify(lease.to_dict())

    @app.route(f"{prefix}/leases/latest", methods=['GET'])
    def get_latest_lease():
        """Get the most recently declared lease for an ip or mac, active or not"""
        ip = request.args.get('ip')
        mac = request.args.get('mac')
        if not ip and not mac:
            return jsonify({'error': 'Missing value', 'message': "'ip' or 'mac' query parameter is required"}), 400

        try:
            leases = lease_parser.parse_leases()
        except Exception as e:
            return lease_file_error(e)

        lease = leases.by_leased(ip) if ip else leases.by_mac(mac)
        if lease is None:
            return jsonify({'error': 'Lease not found'}), 404

        return jsonify(lease.to_dict())

    @app.route(f"{prefix}/hostnames", methods=['GET'])
    def get_hostnames():
        """Get every hostname and client-hostname seen in the leases file"""
        try:
            leases = lease_parser.parse_leases()
            return jsonify({
                'hostnames': sorted(leases.hostnames()),
                'client_hostnames': sorted(leases.client_hostnames())
            })
        except Exception as e:
            return lease_file_error(e)

    return app


def _active_at_param() -> Date:
    """Read the 'at' query parameter (YYYY/MM/DD HH:MM:SS, UTC), default now"""
    at = request.args.get('at')
    if not at:
        return Date.now()
    return Date.parse(at)


def main():
    """Run the application"""
    app = create_app()

    # Production should use a proper WSGI server like gunicorn
    app.run(host='0.0.0.0', port=app.config['PORT'], debug=app.config['DEBUG'])


if __name__ == '__main__':
    main()
