import argparse
import json
import logging


def main():
    parser = argparse.ArgumentParser(description='streaming module editor server')
    parser.add_argument('-d', '--debug', action='store_true', help='autoload modules on change and log debug messages')
    parser.add_argument('--external', action='store_true', help='listen on all interfaces, including external (local connections only if not set)')
    parser.add_argument('-p', '--port', default=8012, type=int, help='port on which to start the server')
    parser.add_argument('-c', '--config-file', type=str, help='path to JSON configuration to load')
    parser.add_argument('--endpoint', type=str, help='streaming service endpoint (overrides config)')
    args = parser.parse_args()
    if args.config_file is not None:
        with open(args.config_file, 'rt') as fid:
            config = json.loads(fid.read())
    else:
        from streamline.dataflow.configure import load_config
        config = load_config(name="config", fallback=True)
    if args.endpoint is not None:
        config["endpoint"] = args.endpoint
    if args.debug:
        config["log_level"] = "DEBUG"
    logging.basicConfig(level=config.get("log_level", "WARNING"))

    from streamline.web_gui.server_flask import create_app
    app = create_app(config)
    host = '0.0.0.0' if args.external else None
    # the reloader would start a second editor session
    app.run(port=args.port, host=host, debug=args.debug, use_reloader=False)


if __name__ == '__main__':
    main()
