#!/usr/bin/env python
import sys

from setuptools import setup, find_packages

if len(sys.argv) == 1:
    sys.argv.append('install')

if sys.argv[1] == 'test':
    from subprocess import call
    sys.exit(call([sys.executable, '-m', 'pytest'] + sys.argv[2:]))

packages = find_packages(include=['streamline', 'streamline.*'])

# pip dependencies
install_requires = [
    'httpx', 'msgpack', 'flask', 'flask-cors',
]
extras_require = {
    'test': ['pytest'],
    }
extras_require['all'] = sum(extras_require.values(), [])
tests_require = ['pytest']

dist = setup(
    name='streamline',
    version='0.1.0',
    description='Editor for streaming block processing modules',
    long_description_content_type="text/x-rst",
    long_description=open('README.rst').read(),
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Code Generators',
    ],
    zip_safe=False,
    packages=packages,
    include_package_data=True,
    entry_points = {
        'console_scripts': ['streamline=streamline.web_gui.run:main'],
    },
    python_requires='>=3.8',
    install_requires=install_requires,
    extras_require=extras_require,
    tests_require=tests_require,
    )

# End of file
